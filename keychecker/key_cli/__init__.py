"""KeyChecker CLI - Command line interface"""

from .cli import main_cli, cli_main, execute_check, run_validation
from .cli_exceptions import KeyCheckerCLIError, CLIErrorHandler

__all__ = ['main_cli', 'cli_main', 'execute_check', 'run_validation',
           'KeyCheckerCLIError', 'CLIErrorHandler']
