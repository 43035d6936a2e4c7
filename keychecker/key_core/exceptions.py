"""
KeyChecker Custom Exceptions
Standardized exception hierarchy for key loading, probing and output
"""

from typing import Optional


class KeyCheckerError(Exception):
    """Base exception for all KeyChecker errors"""
    pass


class ConfigurationError(KeyCheckerError):
    """Configuration-related errors"""
    pass


class KeyFormatError(KeyCheckerError, ValueError):
    """Raised when a candidate string does not match the API key grammar"""

    def __init__(self, message: str, raw_value: str = "", line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.raw_value = raw_value
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is not None:
            return f"line {self.line_number}: {self.message}"
        return self.message


class TransientProbeFailure(KeyCheckerError):
    """Network or server-side failure of a single probe attempt.

    Only used inside the probe executor; the retry policy absorbs it.
    `outcome` carries the classified attempt for the retry decision.
    """

    def __init__(self, message: str, failure_reason=None, outcome=None):
        super().__init__(message)
        self.failure_reason = failure_reason
        self.outcome = outcome


class DestinationWriteError(KeyCheckerError):
    """Output file could not be opened or appended to"""

    def __init__(self, message: str, tier=None, path: Optional[str] = None,
                 key_text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.tier = tier
        self.path = path
        self.key_text = key_text


class InputSourceError(KeyCheckerError):
    """Input key file missing or unreadable (fatal for the whole run)"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
