"""Base CLI Components - Logging, progress and summary output for the command line"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
)
from rich.table import Table

from ..key_core.constants import DEFAULT_LOG_FORMAT, NOISY_LOGGERS
from ..key_core.models import Tier
from ..key_engine.output import RunSummary

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

TIER_STYLES = {
    Tier.FREE: "green",
    Tier.PAID: "bold green",
    Tier.INVALID: "red",
    Tier.RATE_LIMITED: "yellow",
}


def resolve_log_level(verbose: bool = False, quiet: bool = False, silent: bool = False,
                      default: str = "WARNING") -> int:
    """Map -V/-q/-N to a logging level; the most restrictive flag wins"""
    if silent:
        return logging.ERROR
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return getattr(logging, str(default).upper(), logging.WARNING)


class CLILoggingManager:
    """Centralized logging management for CLI operations"""

    def __init__(self, console_level: int = logging.WARNING, log_file: Optional[str] = None):
        self.console_level = console_level
        self.log_file = Path(log_file) if log_file else None
        self.handlers: Dict[str, logging.Handler] = {}
        self._setup_base_logging()

    def _setup_base_logging(self) -> None:
        """Setup base logging configuration"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Remove existing handlers to avoid duplication
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        simple_formatter = logging.Formatter(fmt='%(levelname)s - %(message)s')

        # Console handler
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(simple_formatter)
        root_logger.addHandler(console_handler)
        self.handlers['console'] = console_handler

        # Optional rotating file handler for all logs
        if self.log_file is not None:
            self.add_file_handler(self.log_file)

        # Set third-party loggers to WARNING to reduce noise
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    def add_file_handler(self, log_file) -> None:
        """Attach a rotating file handler (5 MB x 3) receiving DEBUG and up"""
        if 'file' in self.handlers:
            return
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT, encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        )
        logging.getLogger().addHandler(file_handler)
        self.handlers['file'] = file_handler
        self.log_file = log_file

    def set_console_level(self, level: int) -> None:
        """Set console logging level"""
        if 'console' in self.handlers:
            self.handlers['console'].setLevel(level)

    def close(self) -> None:
        root_logger = logging.getLogger()
        for handler in self.handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


class CLIProgressTracker:
    """Progress bar over the stream of classified keys"""

    def __init__(self, description: str = "Validating keys", enabled: bool = True,
                 console: Optional[Console] = None):
        self.description = description
        self.enabled = enabled
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task = None

    def start(self, total: Optional[int] = None) -> None:
        """Start progress tracking"""
        if not self.enabled:
            return
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(style="blue", complete_style="green"),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True
        )
        self._progress.start()
        self._task = self._progress.add_task(self.description, total=total)

    def update(self, advance: int = 1) -> None:
        if self._progress is not None:
            self._progress.update(self._task, advance=advance)

    def complete(self) -> None:
        """Complete progress tracking"""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def __enter__(self) -> 'CLIProgressTracker':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.complete()


def render_config_panel(console: Console, banner: str, status: str) -> None:
    console.print(f"[cyan]{banner}[/cyan]", highlight=False)
    console.print(Panel(status, title="Configuration", border_style="cyan"))


def show_summary(console: Console, summary: RunSummary, paths: Dict[Tier, Any]) -> None:
    """Show per-tier counts and where each tier was written"""
    table = Table(title="Validation Summary", show_header=True, header_style="bold cyan")
    table.add_column("Tier", style="cyan", no_wrap=True)
    table.add_column("Keys", justify="right")
    table.add_column("File", style="dim")

    for tier in Tier:
        style = TIER_STYLES.get(tier, "white")
        table.add_row(f"[{style}]{tier.value}[/{style}]", f"{summary.counts[tier]:,}", str(paths[tier]))

    table.add_row("total", f"{summary.total:,}", "")
    console.print(table)
    console.print(
        f"Attempts: {summary.total_attempts:,}  Elapsed: {summary.elapsed_seconds:.2f}s"
    )

    if summary.write_failures:
        console.print(f"[red]✗ {len(summary.write_failures)} result(s) could not be written:[/red]")
        for failure in summary.write_failures:
            console.print(f"  [dim]{failure.message}[/dim]")
