"""Key Core Models - Credential, tier and classification result"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List

from .constants import API_KEY_PATTERN, API_KEY_PREFIX, API_KEY_LENGTH
from .exceptions import KeyFormatError


# ===============================================================================
# CORE ENUMERATIONS
# ===============================================================================

class Tier(Enum):
    """Service tier assigned to a key after validation"""
    FREE = "free"
    PAID = "paid"
    INVALID = "invalid"
    RATE_LIMITED = "rate_limited"

    @property
    def is_valid(self) -> bool:
        """Key can generate content (free or paid)"""
        return self in (Tier.FREE, Tier.PAID)


_KEY_RE = re.compile(API_KEY_PATTERN)


# ===============================================================================
# CREDENTIAL
# ===============================================================================

@dataclass(frozen=True)
class GeminiKey:
    """A Gemini API key that matches the provider's key grammar"""
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise KeyFormatError("API key cannot be empty", raw_value=str(self.value or ""))

        if not self.value.startswith(API_KEY_PREFIX):
            raise KeyFormatError(
                f"API key must start with '{API_KEY_PREFIX}'", raw_value=self.value
            )

        if len(self.value) != API_KEY_LENGTH:
            raise KeyFormatError(
                f"API key must be {API_KEY_LENGTH} characters, got {len(self.value)}",
                raw_value=self.value
            )

        if not _KEY_RE.match(self.value):
            raise KeyFormatError(
                "API key contains characters outside [A-Za-z0-9_-]", raw_value=self.value
            )

    @classmethod
    def parse(cls, raw: str) -> 'GeminiKey':
        """Parse a raw candidate string (surrounding whitespace is ignored)"""
        if raw is None:
            raise KeyFormatError("API key cannot be empty")
        return cls(raw.strip())

    @property
    def masked(self) -> str:
        """Log-safe form of the key"""
        return f"{self.value[:6]}...{self.value[-4:]}"

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"GeminiKey({self.masked})"


# ===============================================================================
# CLASSIFICATION RESULT
# ===============================================================================

@dataclass(frozen=True)
class ValidatedKey:
    """Terminal classification of one key"""
    key: GeminiKey
    tier: Tier
    attempts: int = 1
    failure_reason: Optional[Any] = None  # FailureReason
    detail: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.tier.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'key': str(self.key),
            'tier': self.tier.value,
            'attempts': self.attempts,
            'failure_reason': self.failure_reason.value if self.failure_reason else None,
            'detail': self.detail
        }


# ===============================================================================
# RAW PROBE RESPONSE
# ===============================================================================

@dataclass(frozen=True)
class ProbeResponse:
    """Raw result of one HTTP attempt against the provider"""
    status: int
    body: Optional[Any] = None
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup"""
        return self.headers.get(name.lower(), default)

    @property
    def error_status(self) -> Optional[str]:
        """The `error.status` field of a Google API error body, if any"""
        if isinstance(self.body, dict) and isinstance(self.body.get('error'), dict):
            return self.body['error'].get('status')
        return None

    @property
    def error_message(self) -> str:
        if isinstance(self.body, dict) and isinstance(self.body.get('error'), dict):
            return str(self.body['error'].get('message', ''))
        return ""

    @property
    def error_reasons(self) -> List[str]:
        """`reason` values from `error.details[]` (e.g. API_KEY_INVALID)"""
        if not isinstance(self.body, dict) or not isinstance(self.body.get('error'), dict):
            return []
        details = self.body['error'].get('details') or []
        return [d['reason'] for d in details if isinstance(d, dict) and d.get('reason')]
