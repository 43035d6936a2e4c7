#!/usr/bin/env python3
"""
keychecker - Main Entry Point
Console script entry point with early logging
"""

import sys
import logging

from keychecker.key_core.constants import DEFAULT_LOG_FORMAT, NOISY_LOGGERS


def setup_logging():
    """Configure logging before the CLI parses its options"""
    verbose = '--verbose' in sys.argv or '-V' in sys.argv
    quiet = '--quiet' in sys.argv or '-q' in sys.argv
    silent = '--silent' in sys.argv or '-N' in sys.argv

    if silent:
        log_level = logging.ERROR
    elif quiet:
        log_level = logging.WARNING
    elif verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.WARNING  # Default: minimal output without -V

    logging.basicConfig(
        level=log_level,
        format=DEFAULT_LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Set third-party loggers to WARNING to reduce noise
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def main():
    """Main entry point"""
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.debug("Starting keychecker CLI")

    from keychecker.key_cli.cli import main_cli

    # click exits with the command's exit code
    return main_cli()


if __name__ == "__main__":
    sys.exit(main())
