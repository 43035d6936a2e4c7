from .models import GeminiKey, Tier, ValidatedKey, ProbeResponse
from .config import ConfigManager, KeyCheckerConfig
from .exceptions import (
    KeyCheckerError, ConfigurationError, KeyFormatError,
    TransientProbeFailure, DestinationWriteError, InputSourceError
)
from .loader import KeyLoadResult, load_keys

__all__ = [
    "GeminiKey", "Tier", "ValidatedKey", "ProbeResponse",
    "ConfigManager", "KeyCheckerConfig",
    "KeyCheckerError", "ConfigurationError", "KeyFormatError",
    "TransientProbeFailure", "DestinationWriteError", "InputSourceError",
    "KeyLoadResult", "load_keys"
]
