"""
KeyChecker Configuration Constants
Centralized constants shared by the config layer, the engine and the CLI
"""

# Provider endpoints
DEFAULT_API_HOST = "https://generativelanguage.googleapis.com/"
DEFAULT_MODEL_NAME = "gemini-2.0-flash-exp"
DEFAULT_CACHE_MODEL_NAME = "gemini-2.0-flash-001"
GENERATE_CONTENT_PATH = "v1beta/models/{model}:generateContent"
CACHED_CONTENTS_PATH = "v1beta/cachedContents"
API_KEY_HEADER = "x-goog-api-key"

# Key grammar: "AIzaSy" followed by 33 url-safe characters
API_KEY_PREFIX = "AIzaSy"
API_KEY_LENGTH = 39
API_KEY_PATTERN = r"^AIzaSy[A-Za-z0-9_-]{33}$"

# Minimal generation probe
PROBE_TEXT = "Hi"
PROBE_BODY = {
    "contents": [
        {
            "parts": [
                {"text": PROBE_TEXT}
            ]
        }
    ]
}

# Context caching needs a minimum prompt size; free-tier projects have no
# cache storage quota, so creating a cache only succeeds on billed projects
CACHE_PROBE_TEXT = "You are an expert at analyzing the user's input. " * 600
CACHE_PROBE_TTL = "30s"

# Default timeouts and concurrency
DEFAULT_TIMEOUT_SEC = 15
DEFAULT_CONCURRENCY = 50
MAX_CONCURRENCY = 1000

# Retry settings
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 10.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# File defaults
DEFAULT_INPUT_PATH = "keys.txt"
DEFAULT_OUTPUT_DIR = "."
DEFAULT_BACKUP_PATH = "backup_keys.txt"
DEFAULT_CONFIG_FILE = "keychecker.yaml"
DEFAULT_TIER_FILES = {
    "free": "free_keys.txt",
    "paid": "paid_keys.txt",
    "invalid": "invalid_keys.txt",
    "rate_limited": "rate_limited_keys.txt",
}

# Environment override prefix
ENV_PREFIX = "KEYCHECKER_"

# Logging configuration
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_LEVEL = 'WARNING'

# Third-party loggers to suppress
NOISY_LOGGERS = [
    'aiohttp.access',
    'aiohttp.client',
    'asyncio',
]

USER_AGENT = "keychecker/0.4 (+https://github.com/keychecker/keychecker)"

GEMINI_ASCII = r"""
   ______                  _         _
  / ____/___   ____ ___   (_)____   (_)
 / / __ / _ \ / __ `__ \ / // __ \ / /
/ /_/ //  __// / / / / // // / / // /
\____/ \___//_/ /_/ /_//_//_/ /_//_/
"""
