"""
Retry Policy - Exponential backoff with jitter for transient probe failures

Decides, after every attempt, whether to wait and retry or to stop with a tier:
- definitive outcomes stop immediately
- transient outcomes retry until the attempt limit is reached
- the backoff is capped, jittered and raised to a server Retry-After hint
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Union

from ...key_core.models import Tier
from .validation_config import ValidationConfig, AttemptOutcome, FailureReason, JitterType


@dataclass(frozen=True)
class RetryAction:
    """Wait `after` seconds, then attempt again"""
    after: float


@dataclass(frozen=True)
class TerminalAction:
    """Stop with the given tier"""
    tier: Tier
    failure_reason: Optional[FailureReason] = None
    exhausted: bool = False


NextAction = Union[RetryAction, TerminalAction]


class RetryPolicy:
    """Stateless per-key retry decisions; safe to share between workers"""

    def __init__(self, config: Optional[ValidationConfig] = None,
                 exhausted_tier: Tier = Tier.INVALID,
                 rng: Optional[random.Random] = None):
        self.config = config or ValidationConfig()
        self.exhausted_tier = exhausted_tier
        self.rng = rng or random.Random()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def next_action(self, attempt_number: int, outcome: AttemptOutcome) -> NextAction:
        """Decide what follows attempt `attempt_number` (1-based)"""
        if attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {attempt_number}")

        if outcome.is_definitive:
            return TerminalAction(outcome.tier, outcome.failure_reason)

        if attempt_number >= self.config.max_attempts:
            return TerminalAction(self.exhausted_tier, outcome.failure_reason, exhausted=True)

        return RetryAction(self.calculate_delay(attempt_number, outcome.retry_after))

    def calculate_delay(self, attempt_number: int, retry_after: Optional[float] = None) -> float:
        """Backoff before attempt `attempt_number + 1`, always within [0, max_delay]"""
        try:
            delay = self.config.base_delay * (self.config.backoff_multiplier ** (attempt_number - 1))
        except OverflowError:
            delay = self.config.max_delay

        # Cap at max delay
        delay = min(delay, self.config.max_delay)

        # Apply jitter
        delay = self._apply_jitter(delay, attempt_number)

        if retry_after is not None:
            delay = max(delay, retry_after)

        return min(max(delay, 0.0), self.config.max_delay)

    def _apply_jitter(self, delay: float, attempt_number: int) -> float:
        """Apply jitter to prevent thundering herd"""
        jitter_type = self.config.jitter_type

        if jitter_type == JitterType.NONE:
            return delay
        elif jitter_type == JitterType.FULL:
            return self.rng.uniform(0, delay)
        elif jitter_type == JitterType.EQUAL:
            jitter = delay * 0.1 * self.rng.random()
            return delay + self.rng.uniform(-jitter, jitter)
        elif jitter_type == JitterType.DECORRELATED:
            # Previous nominal delay stands in for the last one used
            if attempt_number <= 1:
                return delay
            previous = min(delay / self.config.backoff_multiplier, self.config.max_delay)
            return self.rng.uniform(self.config.base_delay, max(previous * 3, self.config.base_delay))
        return delay
