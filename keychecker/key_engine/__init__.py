"""Key Engine - HTTP client, validation and result output"""

from .http_client import GeminiApiClient, build_api_client, split_proxy_url
from .output import TierFileSink, RunSummary, write_keys_to_file, write_clewdr_snippet

__all__ = [
    'GeminiApiClient', 'build_api_client', 'split_proxy_url',
    'TierFileSink', 'RunSummary', 'write_keys_to_file', 'write_clewdr_snippet',
]
