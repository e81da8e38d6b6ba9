"""
Lazily loaded, process-wide cache of the nearest .env file.

The file is located by searching the start directory and a bounded number of
parent directories, parsed once, and kept until ``clear()`` is called.
"""

import logging
import os
import threading
from pathlib import Path

from ..exceptions import DotenvError


logger = logging.getLogger(__name__)

DOTENV_FILENAME = ".env"

# Current directory plus this many parents are searched
DEFAULT_SEARCH_PARENTS = 2


def parse_dotenv(content: str) -> dict[str, str]:
    """
    Parse .env file content into a mapping.

    Blank lines and ``#`` comments are ignored. Each remaining line is split
    on its first ``=``; key and value are trimmed and one matching pair of
    surrounding single or double quotes is removed from the value. Lines
    without ``=`` are skipped with a warning.

    Example:
        >>> parse_dotenv('A=1\\nB="two"\\n# c\\n')
        {'A': '1', 'B': 'two'}
    """
    values: dict[str, str] = {}

    for line_number, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        if not sep:
            logger.warning("Invalid .env line %d: %s", line_number, line)
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]

        values[key.strip()] = value

    return values


def find_dotenv_file(start_dir: Path | None = None, max_parents: int = DEFAULT_SEARCH_PARENTS) -> Path:
    """
    Locate the nearest .env file.

    Args:
        start_dir: Directory to start from (defaults to the working directory)
        max_parents: How many parent directories to check after start_dir

    Returns:
        Path of the first .env file found

    Raises:
        DotenvError: If no .env file exists in the searched directories
    """
    try:
        search_dir = Path(start_dir) if start_dir is not None else Path(os.getcwd())
    except OSError as e:
        raise DotenvError(f"Failed to get current directory: {e}") from e

    for _ in range(max_parents + 1):
        candidate = search_dir / DOTENV_FILENAME
        if candidate.is_file():
            return candidate
        if search_dir.parent == search_dir:
            break
        search_dir = search_dir.parent

    raise DotenvError(".env file not found")


class DotenvCache:
    """
    Thread-safe lazy cache of .env values.

    The first ``get`` loads and parses the file under the lock, so concurrent
    first readers trigger a single load. A failed load raises DotenvError and
    leaves the cache empty.
    """

    def __init__(self, start_dir: Path | None = None, max_parents: int = DEFAULT_SEARCH_PARENTS):
        self.start_dir = start_dir
        self.max_parents = max_parents
        self._lock = threading.Lock()
        self._values: dict[str, str] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._values is not None

    def _load(self) -> dict[str, str]:
        path = find_dotenv_file(self.start_dir, self.max_parents)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DotenvError(f"Failed to read .env file: {e}") from e

        values = parse_dotenv(content)
        logger.debug("Loaded %d variables from %s", len(values), path)
        return values

    def values(self) -> dict[str, str]:
        """Return a copy of all cached values, loading the file if needed."""
        with self._lock:
            if self._values is None:
                self._values = self._load()
            return dict(self._values)

    def get(self, name: str) -> str | None:
        """Return one value, or None when the file does not define it."""
        with self._lock:
            if self._values is None:
                self._values = self._load()
            return self._values.get(name)

    def clear(self) -> None:
        """Drop cached values so the next read reloads the file."""
        with self._lock:
            self._values = None
