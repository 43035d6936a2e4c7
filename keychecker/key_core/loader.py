"""Key Loader - Read candidate keys from a text file"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from .exceptions import InputSourceError, KeyFormatError
from .models import GeminiKey

logger = logging.getLogger(__name__)


@dataclass
class KeyLoadResult:
    """Parsed keys plus the lines that were rejected"""
    keys: List[GeminiKey] = field(default_factory=list)
    format_errors: List[KeyFormatError] = field(default_factory=list)
    duplicate_count: int = 0
    total_lines: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.keys)


def parse_key_lines(lines, source: str = "<input>") -> KeyLoadResult:
    """Parse an iterable of lines; blank lines and '#' comments are skipped"""
    result = KeyLoadResult()
    seen = set()

    for line_number, line in enumerate(lines, start=1):
        result.total_lines += 1
        text = line.strip()
        if not text or text.startswith('#'):
            continue

        try:
            key = GeminiKey.parse(text)
        except KeyFormatError as e:
            e.line_number = line_number
            result.format_errors.append(e)
            logger.warning(f"Skipping malformed key in {source} at {e}")
            continue

        if key in seen:
            result.duplicate_count += 1
            continue
        seen.add(key)
        result.keys.append(key)

    return result


def load_keys(path: Union[str, Path]) -> KeyLoadResult:
    """Load keys from a UTF-8 file, one per line, preserving first-seen order"""
    path = Path(path)
    if not path.is_file():
        raise InputSourceError(f"Input file not found: {path}", path=str(path))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            result = parse_key_lines(f, source=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise InputSourceError(f"Failed to read input file {path}: {e}", path=str(path)) from e

    logger.info(
        f"Loaded {result.valid_count} keys from {path} "
        f"({len(result.format_errors)} malformed, {result.duplicate_count} duplicates)"
    )
    return result
