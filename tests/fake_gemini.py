#!/usr/bin/env python3
"""
In-memory stand-in for GeminiApiClient

Scripted responses per key and endpoint, call recording and an in-flight
counter for concurrency assertions.
"""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

sys.path.insert(0, str(Path(__file__).parent.parent))

from keychecker.key_core.models import ProbeResponse

Scripted = Union[ProbeResponse, BaseException]


def make_key(index: int) -> str:
    """A syntactically valid key that is unique per index"""
    return f"AIzaSy{index:033d}"


def generation_ok(headers: Optional[Dict[str, str]] = None) -> ProbeResponse:
    body = {
        "candidates": [{"content": {"parts": [{"text": "Hello!"}], "role": "model"}}],
        "usageMetadata": {"promptTokenCount": 1, "totalTokenCount": 3}
    }
    return ProbeResponse(status=200, body=body, headers={k.lower(): v for k, v in (headers or {}).items()})


def cache_ok() -> ProbeResponse:
    return ProbeResponse(status=200, body={"name": "cachedContents/abc123", "model": "models/x"})


def api_error(status: int, error_status: str = "", message: str = "",
              reason: Optional[str] = None, headers: Optional[Dict[str, str]] = None) -> ProbeResponse:
    error = {"code": status, "message": message, "status": error_status}
    if reason:
        error["details"] = [{"@type": "type.googleapis.com/google.rpc.ErrorInfo", "reason": reason}]
    return ProbeResponse(status=status, body={"error": error},
                         headers={k.lower(): v for k, v in (headers or {}).items()})


class FakeGeminiClient:
    """Implements post_json like GeminiApiClient, answering from scripts.

    `generation` / `cache` map a key to a list of responses (or exceptions)
    consumed in order; the last entry repeats once the list runs out.
    Keys without a script get the defaults.
    """

    def __init__(self, generation: Optional[Dict[str, List[Scripted]]] = None,
                 cache: Optional[Dict[str, List[Scripted]]] = None,
                 default_generation: Optional[Scripted] = None,
                 default_cache: Optional[Scripted] = None,
                 delay: float = 0.0):
        self.generation = {k: list(v) for k, v in (generation or {}).items()}
        self.cache = {k: list(v) for k, v in (cache or {}).items()}
        self.default_generation = default_generation or generation_ok()
        self.default_cache = default_cache or api_error(429, "RESOURCE_EXHAUSTED", "quota exceeded")
        self.delay = delay
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.closed = False

    async def post_json(self, url: str, api_key: str, payload) -> ProbeResponse:
        is_cache = "cachedContents" in url
        self.calls.append(("cache" if is_cache else "generate", api_key))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self._next(self.cache if is_cache else self.generation, api_key,
                                 self.default_cache if is_cache else self.default_generation)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1

    @staticmethod
    def _next(scripts: Dict[str, List[Scripted]], api_key: str, default: Scripted) -> Scripted:
        script = scripts.get(api_key)
        if not script:
            return default
        if len(script) > 1:
            return script.pop(0)
        return script[0]

    def count(self, kind: str, api_key: Optional[str] = None) -> int:
        return sum(1 for k, key in self.calls if k == kind and (api_key is None or key == api_key))

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class SleepRecorder:
    """Replacement for asyncio.sleep that records delays and returns immediately"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)
