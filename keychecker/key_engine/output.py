"""Result Output - Route classified keys to per-tier files"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any, Iterable, Callable, Union, TextIO

import toml

from ..key_core.config import KeyCheckerConfig
from ..key_core.constants import DEFAULT_TIER_FILES
from ..key_core.exceptions import DestinationWriteError
from ..key_core.models import GeminiKey, Tier, ValidatedKey

logger = logging.getLogger(__name__)


# ===============================================================================
# RUN SUMMARY
# ===============================================================================

@dataclass
class RunSummary:
    """Aggregate of one run; the in-memory results survive write failures"""
    counts: Dict[Tier, int] = field(default_factory=lambda: {tier: 0 for tier in Tier})
    results: List[ValidatedKey] = field(default_factory=list)
    write_failures: List[DestinationWriteError] = field(default_factory=list)
    total_attempts: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def valid_count(self) -> int:
        return self.counts[Tier.FREE] + self.counts[Tier.PAID]

    def add(self, result: ValidatedKey):
        self.results.append(result)
        self.counts[result.tier] += 1
        self.total_attempts += result.attempts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'total': self.total,
            'counts': {tier.value: count for tier, count in self.counts.items()},
            'valid': self.valid_count,
            'total_attempts': self.total_attempts,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'write_failures': [
                {'tier': f.tier.value if f.tier else None, 'path': f.path, 'error': f.message}
                for f in self.write_failures
            ]
        }


# ===============================================================================
# DESTINATIONS
# ===============================================================================

class _AppendFile:
    """Lazily opened text file for one destination.

    Only the sink's consumer coroutine writes to it, so there is a single
    writer per file and no locking. `reset()` truncates what a previous run
    left behind; appends within a run go to the end.
    """

    def __init__(self, path: Path):
        self.path = path
        self._handle: Optional[TextIO] = None

    def reset(self):
        self.close()
        if self.path.exists():
            with open(self.path, 'w', encoding='utf-8'):
                pass

    def append(self, text: str):
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.path, 'a', encoding='utf-8')
        self._handle.write(text)
        self._handle.flush()

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None


def clewdr_entry(key: Union[GeminiKey, str]) -> str:
    """One `[[gemini_keys]]` table in ClewdR's config format"""
    return toml.dumps({'gemini_keys': [{'key': str(key)}]})


class TierFileSink:
    """Writes each result to the file of its tier, one key per line.

    Files from an earlier run are emptied when `consume` starts.
    """

    def __init__(self, output_dir: Union[str, Path] = ".",
                 tier_files: Optional[Dict[str, str]] = None,
                 clewdr_path: Optional[Union[str, Path]] = None):
        names = dict(DEFAULT_TIER_FILES)
        names.update(tier_files or {})
        self.output_dir = Path(output_dir)
        self.destinations: Dict[Tier, _AppendFile] = {
            tier: _AppendFile(self.output_dir / names[tier.value]) for tier in Tier
        }
        self.clewdr = _AppendFile(Path(clewdr_path)) if clewdr_path else None
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config: KeyCheckerConfig) -> 'TierFileSink':
        return cls(config.output_dir, config.tier_files, config.clewdr_output)

    def path_for(self, tier: Tier) -> Path:
        return self.destinations[tier].path

    def record(self, result: ValidatedKey, summary: RunSummary):
        """Persist one result; failures are recorded in `summary`, never raised"""
        summary.add(result)
        self._append(self.destinations[result.tier], f"{result.key}\n", result, summary)

        if self.clewdr is not None and result.is_valid:
            self._append(self.clewdr, clewdr_entry(result.key), result, summary)

    def _append(self, destination: _AppendFile, text: str, result: ValidatedKey, summary: RunSummary):
        try:
            destination.append(text)
        except OSError as e:
            failure = DestinationWriteError(
                f"Failed to write {result.key.masked} to {destination.path}: {e}",
                tier=result.tier, path=str(destination.path), key_text=str(result.key)
            )
            summary.write_failures.append(failure)
            self.logger.error(failure.message)

    async def consume(self, results, on_result: Optional[Callable[[ValidatedKey], Any]] = None) -> RunSummary:
        """Drain an async (or plain) iterable of results into the tier files"""
        summary = RunSummary()
        start_time = time.time()
        self.reset(summary)
        try:
            if hasattr(results, '__aiter__'):
                async for result in results:
                    self._handle_result(result, summary, on_result)
            else:
                for result in results:
                    self._handle_result(result, summary, on_result)
        finally:
            if hasattr(results, 'aclose'):
                await results.aclose()
            summary.elapsed_seconds = time.time() - start_time
            self.close()
        return summary

    def reset(self, summary: Optional[RunSummary] = None):
        """Empty the files left by an earlier run so each key lands in exactly one file"""
        destinations = list(self.destinations.items())
        if self.clewdr is not None:
            destinations.append((None, self.clewdr))

        for tier, destination in destinations:
            try:
                destination.reset()
            except OSError as e:
                failure = DestinationWriteError(
                    f"Failed to reset {destination.path}: {e}", tier=tier, path=str(destination.path)
                )
                if summary is not None:
                    summary.write_failures.append(failure)
                self.logger.error(failure.message)

    def _handle_result(self, result: ValidatedKey, summary: RunSummary, on_result):
        self.record(result, summary)
        if on_result is not None:
            on_result(result)

    def close(self):
        for destination in self.destinations.values():
            destination.close()
        if self.clewdr is not None:
            self.clewdr.close()


# ===============================================================================
# PLAIN KEY LISTS
# ===============================================================================

def write_keys_to_file(keys: Iterable[Union[GeminiKey, str]], path: Union[str, Path]) -> int:
    """Write one key per line, replacing the file; returns the number written"""
    path = Path(path)
    count = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            for key in keys:
                f.write(f"{key}\n")
                count += 1
    except OSError as e:
        raise DestinationWriteError(f"Failed to write keys to {path}: {e}", path=str(path)) from e

    logger.debug(f"Wrote {count} keys to {path}")
    return count


def write_clewdr_snippet(keys: Iterable[Union[GeminiKey, str]], path: Union[str, Path]) -> int:
    """Write a complete ClewdR `[[gemini_keys]]` snippet, replacing the file"""
    entries = [{'key': str(key)} for key in keys]
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(toml.dumps({'gemini_keys': entries}))
    except OSError as e:
        raise DestinationWriteError(f"Failed to write ClewdR snippet to {path}: {e}", path=str(path)) from e
    return len(entries)
