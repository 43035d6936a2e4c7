__version__ = "0.4.0"

from .key_core.models import GeminiKey, Tier, ValidatedKey
from .key_core.config import ConfigManager, KeyCheckerConfig
from .key_core.exceptions import KeyCheckerError, KeyFormatError
from .key_core.loader import load_keys
from .key_engine.http_client import GeminiApiClient, build_api_client
from .key_engine.validation import AsyncKeyValidator, KeyValidationPipeline
from .key_engine.output import RunSummary, TierFileSink

__all__ = [
    "GeminiKey", "Tier", "ValidatedKey",
    "ConfigManager", "KeyCheckerConfig",
    "KeyCheckerError", "KeyFormatError", "load_keys",
    "GeminiApiClient", "build_api_client",
    "AsyncKeyValidator", "KeyValidationPipeline",
    "RunSummary", "TierFileSink",
]
