"""Index Loader — walks an index checkout and reads each package file.

Skips the top-level ``config.json`` and anything hidden (``.git`` and
friends).  Returns ``(source, text)`` pairs where ``source`` is the path
relative to the index root, which is what diagnostics show.
"""

import logging
import os
from pathlib import Path

from revdeps.errors import IndexIOError

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _source_name(root: Path, filename) -> str:
    """Root-relative name for diagnostics, falling back to the full path."""
    if not filename:
        return str(root)
    try:
        relative = Path(filename).relative_to(root)
    except ValueError:
        return str(filename)
    return relative.as_posix() if relative.parts else str(root)


def iter_index_files(root: Path) -> list[Path]:
    """All package files under ``root``, sorted.

    Raises:
        IndexIOError: If a directory cannot be listed.
    """
    root = Path(root)

    def _on_error(exc: OSError):
        raise IndexIOError(_source_name(root, exc.filename), exc)

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        # Prune hidden directories in place so os.walk never descends
        dirnames[:] = [d for d in dirnames if not _is_hidden(d)]
        base = Path(dirpath)
        for name in filenames:
            if _is_hidden(name):
                continue
            if name == CONFIG_FILE and base == root:
                continue
            path = base / name
            if path.is_file():
                files.append(path)
    return sorted(files)


def read_blob(root: Path, path: Path) -> tuple[str, str]:
    """Read one package file as UTF-8.

    Raises:
        IndexIOError: If the file disappeared, is unreadable, or not UTF-8.
    """
    source = path.relative_to(root).as_posix()
    try:
        return source, path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IndexIOError(source, exc) from exc


def load_blobs(root: Path) -> list[tuple[str, str]]:
    """Read every package file under ``root``."""
    root = Path(root)
    paths = iter_index_files(root)
    logger.debug("Discovered %d package files under %s", len(paths), root)
    return [read_blob(root, path) for path in paths]
