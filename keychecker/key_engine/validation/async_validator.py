"""Async Key Validator - Probe one key to a terminal tier using aiohttp"""

import asyncio
import logging
import random
from typing import Optional, Callable, Awaitable, Tuple, Any, Dict

import aiohttp

from ...key_core.exceptions import TransientProbeFailure
from ...key_core.models import GeminiKey, Tier, ValidatedKey
from .classifier import ResponseClassifier
from .retry_policy import RetryPolicy, TerminalAction
from .validation_config import (
    ValidationConfig, AttemptOutcome, FailureReason, OutcomeKind, TierDetection
)

# Exceptions a probe attempt may raise that are classified rather than propagated
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)

SleepFunction = Callable[[float], Awaitable[Any]]


class AsyncKeyValidator:
    """Runs attempt -> classify -> retry decision until a tier is reached"""

    def __init__(self, config: Optional[ValidationConfig] = None,
                 classifier: Optional[ResponseClassifier] = None,
                 sleep: Optional[SleepFunction] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or ValidationConfig()
        self.classifier = classifier or ResponseClassifier(self.config)
        self.generation_policy = RetryPolicy(self.config, exhausted_tier=Tier.INVALID, rng=rng)
        self.tier_policy = RetryPolicy(self.config, exhausted_tier=Tier.FREE, rng=rng)
        self.sleep = sleep or asyncio.sleep
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def validate(self, client, key: GeminiKey) -> ValidatedKey:
        """Classify `key`; never raises except on cancellation"""
        try:
            return await self._validate_key_internal(client, key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error validating {key.masked}: {e}")
            return ValidatedKey(key, Tier.INVALID, failure_reason=FailureReason.UNKNOWN_ERROR,
                                detail=f"{type(e).__name__}: {e}")

    async def _validate_key_internal(self, client, key: GeminiKey) -> ValidatedKey:
        action, attempts, last = await self._run_probe(
            client, key,
            url=self.config.generation_url,
            payload=self.config.probe_body,
            classify=self.classifier.classify_generation,
            policy=self.generation_policy
        )
        tier = action.tier
        failure_reason = FailureReason.RETRIES_EXHAUSTED if action.exhausted else action.failure_reason
        detail = self._detail(action, last)

        if tier == Tier.FREE and self.config.tier_detection == TierDetection.CACHE_PROBE:
            tier_action, tier_attempts, tier_last = await self._run_probe(
                client, key,
                url=self.config.cache_url,
                payload=self.config.cache_probe_body,
                classify=self.classifier.classify_tier_probe,
                policy=self.tier_policy
            )
            attempts += tier_attempts
            tier = tier_action.tier
            if tier_action.exhausted:
                detail = f"tier probe gave up: {self._detail(tier_action, tier_last)}"

        result = ValidatedKey(key, tier, attempts=attempts,
                              failure_reason=failure_reason, detail=detail)
        self.logger.info(f"{key.masked} -> {tier.value} after {attempts} attempt(s)")
        return result

    async def _run_probe(self, client, key: GeminiKey, url: str, payload: Dict[str, Any],
                         classify: Callable[..., AttemptOutcome],
                         policy: RetryPolicy) -> Tuple[TerminalAction, int, AttemptOutcome]:
        attempt = 0
        while True:
            attempt += 1
            try:
                outcome = await self._attempt(client, key, url, payload, classify)
            except TransientProbeFailure as e:
                outcome = e.outcome

            action = policy.next_action(attempt, outcome)
            if isinstance(action, TerminalAction):
                return action, attempt, outcome

            reason = outcome.failure_reason.value if outcome.failure_reason else "unknown"
            self.logger.debug(
                f"Retry {attempt + 1}/{policy.max_attempts} for {key.masked} "
                f"after {action.after:.2f}s delay (reason: {reason})"
            )
            await self.sleep(action.after)

    async def _attempt(self, client, key: GeminiKey, url: str, payload: Dict[str, Any],
                       classify: Callable[..., AttemptOutcome]) -> AttemptOutcome:
        """Send one request; raises TransientProbeFailure for retryable outcomes"""
        try:
            response = await client.post_json(url, key.value, payload)
            outcome = classify(response=response)
        except TRANSPORT_ERRORS as e:
            outcome = classify(error=e)

        if outcome.kind == OutcomeKind.TRANSIENT_FAILURE:
            reason = outcome.failure_reason.value if outcome.failure_reason else "unknown"
            raise TransientProbeFailure(
                f"{key.masked}: {reason} {outcome.detail or ''}".rstrip(),
                failure_reason=outcome.failure_reason, outcome=outcome
            )
        return outcome

    @staticmethod
    def _detail(action: TerminalAction, last: AttemptOutcome) -> Optional[str]:
        if action.exhausted:
            reason = last.failure_reason.value if last.failure_reason else "unknown"
            return f"retries exhausted, last failure {reason}: {last.detail or ''}".rstrip(': ')
        return last.detail

