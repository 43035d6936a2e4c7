"""KeyChecker CLI Exception Hierarchy - Error reporting for the command line

Wraps core failures into structured errors carrying an error code, context
and the process exit code to use.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class KeyCheckerCLIError(Exception):
    """Base exception for all CLI-related errors"""

    exit_code = EXIT_FAILURE

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/reporting"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context,
            'timestamp': self.timestamp.isoformat()
        }


class CLIConfigurationError(KeyCheckerCLIError):
    """Configuration-related errors"""

    def __init__(self, message: str, config_file: Optional[str] = None,
                 config_key: Optional[str] = None):
        context = {}
        if config_file:
            context['config_file'] = config_file
        if config_key:
            context['config_key'] = config_key
        super().__init__(message, "CONFIG_ERROR", context)


class InputFileError(KeyCheckerCLIError):
    """Key input file missing or unreadable"""

    def __init__(self, message: str, path: Optional[str] = None):
        context = {}
        if path:
            context['path'] = path
        super().__init__(message, "INPUT_ERROR", context)


class CLIErrorHandler:
    """Centralized error handling for CLI operations"""

    def __init__(self, logger: Optional[logging.Logger] = None,
                 console: Optional[Console] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.console = console or Console(stderr=True)

    def handle_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> int:
        """Log and print `error`; returns the exit code to use"""
        if isinstance(error, KeyCheckerCLIError):
            error_data = error.to_dict()
            if context:
                error_data['context'].update(context)

            self.logger.error(f"CLI Error: {error.message}", extra={'error_data': error_data})
            self._print_user_error(error)
            return error.exit_code

        self.logger.error(
            f"Unexpected error: {error}",
            extra={
                'error_type': type(error).__name__,
                'traceback': traceback.format_exc(),
                'context': context or {}
            }
        )
        self.console.print(f"[red]✗ An unexpected error occurred: {error}[/red]")
        return EXIT_FAILURE

    def _print_user_error(self, error: KeyCheckerCLIError) -> None:
        """Print user-friendly error message with actionable suggestions"""
        self.console.print(f"[red]✗ Error: {error.message}[/red]")

        for key, value in error.context.items():
            self.console.print(f"  [dim]{key}: {value}[/dim]")

        suggestion = self._get_error_suggestion(error)
        if suggestion:
            self.console.print(f"[yellow]Suggestion: {suggestion}[/yellow]")

    def _get_error_suggestion(self, error: KeyCheckerCLIError) -> Optional[str]:
        """Get actionable suggestion based on error type and context"""
        if isinstance(error, CLIConfigurationError):
            if 'config_file' in error.context:
                return f"Check configuration file syntax: {error.context['config_file']}"
            return "Run 'keychecker --help' to see all configuration options"

        if isinstance(error, InputFileError):
            return "Pass the key list with -i/--input-path (one key per line)"

        return "Run 'keychecker --help' for usage information"
