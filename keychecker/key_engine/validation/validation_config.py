"""Validation Configuration - Settings and enums for key validation"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any

from ...key_core.config import KeyCheckerConfig
from ...key_core.constants import (
    DEFAULT_API_HOST, DEFAULT_MODEL_NAME, DEFAULT_CACHE_MODEL_NAME,
    GENERATE_CONTENT_PATH, CACHED_CONTENTS_PATH, PROBE_BODY,
    CACHE_PROBE_TEXT, CACHE_PROBE_TTL,
    DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_BASE_DELAY, DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_BACKOFF_MULTIPLIER
)
from ...key_core.models import Tier


class FailureReason(Enum):
    """Detailed failure reasons for better debugging"""
    TIMEOUT_CONNECT = "timeout_connect"
    TIMEOUT_READ = "timeout_read"
    TIMEOUT_TOTAL = "timeout_total"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_RESET = "connection_reset"
    NETWORK_UNREACHABLE = "network_unreachable"
    DNS_RESOLUTION = "dns_resolution"
    SSL_ERROR = "ssl_error"
    PROXY_ERROR = "proxy_error"
    SERVER_ERROR = "server_error"
    RATE_LIMITED = "rate_limited"
    KEY_REJECTED = "key_rejected"
    INVALID_RESPONSE = "invalid_response"
    RETRIES_EXHAUSTED = "retries_exhausted"
    WORKER_ERROR = "worker_error"
    UNKNOWN_ERROR = "unknown_error"


class JitterType(Enum):
    """Types of jitter for backoff"""
    NONE = "none"
    FULL = "full"
    EQUAL = "equal"
    DECORRELATED = "decorrelated"


class TierDetection(Enum):
    """How a working key is told apart as free or paid"""
    CACHE_PROBE = "cache_probe"
    RESPONSE_HEADER = "response_header"
    NONE = "none"


class OutcomeKind(Enum):
    """Verdict of a single probe attempt"""
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"


@dataclass(frozen=True)
class AttemptOutcome:
    """Classification of one attempt; never persisted"""
    kind: OutcomeKind
    tier: Optional[Tier] = None
    failure_reason: Optional[FailureReason] = None
    retry_after: Optional[float] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, tier: Tier, detail: Optional[str] = None) -> 'AttemptOutcome':
        return cls(OutcomeKind.SUCCESS, tier=tier, detail=detail)

    @classmethod
    def permanent(cls, tier: Tier, reason: FailureReason,
                  detail: Optional[str] = None) -> 'AttemptOutcome':
        return cls(OutcomeKind.PERMANENT_FAILURE, tier=tier, failure_reason=reason, detail=detail)

    @classmethod
    def transient(cls, reason: FailureReason, retry_after: Optional[float] = None,
                  detail: Optional[str] = None) -> 'AttemptOutcome':
        return cls(OutcomeKind.TRANSIENT_FAILURE, failure_reason=reason,
                   retry_after=retry_after, detail=detail)

    @property
    def is_definitive(self) -> bool:
        """A tier is known; no retry can change it"""
        return self.kind != OutcomeKind.TRANSIENT_FAILURE


def _cache_probe_body(model_name: str) -> Dict[str, Any]:
    return {
        "model": f"models/{model_name}",
        "contents": [
            {
                "role": "user",
                "parts": [{"text": CACHE_PROBE_TEXT}]
            }
        ],
        "ttl": CACHE_PROBE_TTL
    }


@dataclass
class ValidationConfig:
    """Validation settings derived once from the run configuration"""

    # Endpoints
    generation_url: str = DEFAULT_API_HOST + GENERATE_CONTENT_PATH.format(model=DEFAULT_MODEL_NAME)
    cache_url: str = DEFAULT_API_HOST + CACHED_CONTENTS_PATH
    probe_body: Dict[str, Any] = field(default_factory=lambda: PROBE_BODY)
    cache_model_name: str = DEFAULT_CACHE_MODEL_NAME

    # Retry settings
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_RETRY_MAX_DELAY
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    jitter_type: JitterType = JitterType.EQUAL

    # Free/paid detection
    tier_detection: TierDetection = TierDetection.CACHE_PROBE
    paid_tier_header: Optional[str] = None
    paid_tier_values: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays cannot be negative")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")

    @property
    def cache_probe_body(self) -> Dict[str, Any]:
        return _cache_probe_body(self.cache_model_name)

    @classmethod
    def from_config(cls, config: KeyCheckerConfig) -> 'ValidationConfig':
        """Build validation settings from the merged run configuration"""
        return cls(
            generation_url=config.gemini_api_url(),
            cache_url=config.cache_api_url(),
            cache_model_name=config.cache_model_name,
            max_attempts=config.max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            backoff_multiplier=config.backoff_multiplier,
            jitter_type=JitterType(config.jitter),
            tier_detection=TierDetection(config.tier_detection),
            paid_tier_header=config.paid_tier_header,
            paid_tier_values=list(config.paid_tier_values or [])
        )
