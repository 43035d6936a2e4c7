"""Response Classifier - Map provider responses and transport errors to attempt outcomes"""

import asyncio
import logging
import socket
import ssl
from typing import Optional

import aiohttp
from aiohttp.client_exceptions import (
    ClientConnectorError, ClientProxyConnectionError, ClientSSLError,
    ServerDisconnectedError, ServerTimeoutError, ClientPayloadError, ClientOSError
)

from ...key_core.models import ProbeResponse, Tier
from .validation_config import (
    ValidationConfig, AttemptOutcome, FailureReason, TierDetection
)

# Google API error statuses and detail reasons that mean the key itself is bad
INVALID_KEY_STATUSES = {"PERMISSION_DENIED", "UNAUTHENTICATED"}
INVALID_KEY_REASONS = {"API_KEY_INVALID", "API_KEY_EXPIRED", "API_KEY_SERVICE_BLOCKED"}
INVALID_KEY_MESSAGES = ("api key not valid", "api key expired", "api key was reported as leaked")

RATE_LIMIT_STATUSES = {"RESOURCE_EXHAUSTED"}
RATE_LIMIT_MESSAGES = ("quota", "rate limit")

GENERATION_BODY_FIELDS = ("candidates", "promptFeedback", "usageMetadata")


class ResponseClassifier:
    """Pure mapping of one attempt to SUCCESS, TRANSIENT_FAILURE or PERMANENT_FAILURE"""

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._paid_values = {v.strip().lower() for v in self.config.paid_tier_values}

    # ===========================================================================
    # GENERATION PROBE
    # ===========================================================================

    def classify_generation(self, response: Optional[ProbeResponse] = None,
                            error: Optional[BaseException] = None) -> AttemptOutcome:
        """Classify one generateContent attempt"""
        if error is not None:
            reason = self.classify_exception(error)
            return AttemptOutcome.transient(reason, detail=f"{type(error).__name__}: {error}")

        if response is None:
            raise ValueError("either response or error is required")

        status = response.status

        if status == 429:
            return AttemptOutcome.permanent(
                Tier.RATE_LIMITED, FailureReason.RATE_LIMITED, detail=self._describe(response)
            )

        if status in (401, 403) or self._signals_invalid_key(response):
            return AttemptOutcome.permanent(
                Tier.INVALID, FailureReason.KEY_REJECTED, detail=self._describe(response)
            )

        if self._signals_rate_limit(response):
            return AttemptOutcome.permanent(
                Tier.RATE_LIMITED, FailureReason.RATE_LIMITED, detail=self._describe(response)
            )

        if status >= 500:
            return AttemptOutcome.transient(
                FailureReason.SERVER_ERROR,
                retry_after=parse_retry_after(response.header('Retry-After')),
                detail=self._describe(response)
            )

        if status == 200 and self._is_generation_body(response.body):
            return AttemptOutcome.success(self._tier_from_generation(response))

        return AttemptOutcome.permanent(
            Tier.INVALID, FailureReason.INVALID_RESPONSE, detail=self._describe(response)
        )

    def _tier_from_generation(self, response: ProbeResponse) -> Tier:
        """Free/paid verdict available from the generation response alone.

        With cache probing the answer is provisional; the executor upgrades
        it after the cache probe.
        """
        if self.config.tier_detection == TierDetection.RESPONSE_HEADER and self.config.paid_tier_header:
            value = response.header(self.config.paid_tier_header)
            if value is not None and value.strip().lower() in self._paid_values:
                return Tier.PAID
        return Tier.FREE

    # ===========================================================================
    # TIER PROBE
    # ===========================================================================

    def classify_tier_probe(self, response: Optional[ProbeResponse] = None,
                            error: Optional[BaseException] = None) -> AttemptOutcome:
        """Classify one cachedContents attempt for a key already known to work"""
        if error is not None:
            reason = self.classify_exception(error)
            return AttemptOutcome.transient(reason, detail=f"{type(error).__name__}: {error}")

        if response is None:
            raise ValueError("either response or error is required")

        if response.status == 200:
            return AttemptOutcome.success(Tier.PAID)

        if response.status >= 500:
            return AttemptOutcome.transient(
                FailureReason.SERVER_ERROR,
                retry_after=parse_retry_after(response.header('Retry-After')),
                detail=self._describe(response)
            )

        return AttemptOutcome.success(Tier.FREE, detail=self._describe(response))

    # ===========================================================================
    # HELPERS
    # ===========================================================================

    def _signals_invalid_key(self, response: ProbeResponse) -> bool:
        if response.error_status in INVALID_KEY_STATUSES:
            return True
        if INVALID_KEY_REASONS.intersection(response.error_reasons):
            return True
        message = response.error_message.lower()
        return any(marker in message for marker in INVALID_KEY_MESSAGES)

    def _signals_rate_limit(self, response: ProbeResponse) -> bool:
        if response.status < 400:
            return False
        if response.error_status in RATE_LIMIT_STATUSES:
            return True
        message = response.error_message.lower()
        return any(marker in message for marker in RATE_LIMIT_MESSAGES)

    @staticmethod
    def _is_generation_body(body) -> bool:
        return isinstance(body, dict) and any(name in body for name in GENERATION_BODY_FIELDS)

    @staticmethod
    def _describe(response: ProbeResponse) -> str:
        status_text = response.error_status or response.error_message
        if status_text:
            return f"HTTP {response.status} {status_text}"
        return f"HTTP {response.status}"

    def classify_exception(self, exception: BaseException) -> FailureReason:
        """Classify exception to determine failure reason"""
        if isinstance(exception, ServerTimeoutError):
            return FailureReason.TIMEOUT_READ
        if isinstance(exception, asyncio.TimeoutError):
            return FailureReason.TIMEOUT_TOTAL
        if isinstance(exception, ClientProxyConnectionError):
            return FailureReason.PROXY_ERROR
        if isinstance(exception, (ClientSSLError, ssl.SSLError)):
            return FailureReason.SSL_ERROR
        if isinstance(exception, ClientConnectorError):
            os_error = getattr(exception, 'os_error', None)
            if isinstance(os_error, socket.gaierror):
                return FailureReason.DNS_RESOLUTION
            if isinstance(os_error, ConnectionRefusedError):
                return FailureReason.CONNECTION_REFUSED
            return self._classify_by_text(exception, FailureReason.NETWORK_UNREACHABLE)
        if isinstance(exception, (ServerDisconnectedError, ClientPayloadError, ConnectionResetError)):
            return FailureReason.CONNECTION_RESET
        if isinstance(exception, ConnectionRefusedError):
            return FailureReason.CONNECTION_REFUSED
        if isinstance(exception, socket.gaierror):
            return FailureReason.DNS_RESOLUTION
        if isinstance(exception, (ClientOSError, aiohttp.ClientError, OSError)):
            return self._classify_by_text(exception, FailureReason.CONNECTION_RESET)
        return self._classify_by_text(exception, FailureReason.UNKNOWN_ERROR)

    @staticmethod
    def _classify_by_text(exception: BaseException, default: FailureReason) -> FailureReason:
        exception_str = str(exception).lower()

        if 'timeout' in exception_str or 'timed out' in exception_str:
            return FailureReason.TIMEOUT_CONNECT
        elif 'refused' in exception_str:
            return FailureReason.CONNECTION_REFUSED
        elif 'reset' in exception_str:
            return FailureReason.CONNECTION_RESET
        elif 'unreachable' in exception_str:
            return FailureReason.NETWORK_UNREACHABLE
        elif 'name or service' in exception_str or 'dns' in exception_str:
            return FailureReason.DNS_RESOLUTION
        elif 'ssl' in exception_str or 'certificate' in exception_str:
            return FailureReason.SSL_ERROR
        return default


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in delta-seconds form; HTTP-date values are ignored"""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
