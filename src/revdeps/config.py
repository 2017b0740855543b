"""Run configuration and index-location resolution.

The core never looks at the environment.  The CLI resolves the index path
here (flag first, then ``$CARGO_HOME``, then ``~/.cargo``) and hands the core
an explicit ``RunConfig``.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from revdeps.errors import ConfigurationError
from revdeps.graph import EdgeFilter
from revdeps.report import QUERY_MODES

logger = logging.getLogger(__name__)

# ── Constants ──

# Directory name of the crates.io index checkout inside the cargo home
INDEX_DIR = "github.com-1ecc6299db9ec823"

CARGO_HOME_ENV = "CARGO_HOME"

# Legacy multirust installs set CARGO_HOME to a directory that is no longer used
_LEGACY_CARGO_HOME_MARKERS = (".multirust/cargo", ".multirust\\cargo")


@dataclass
class RunConfig:
    """Configuration for a single query run.

    Attributes:
        index_path: Resolved root of the index tree.
        mode: Query mode, one of ``report.QUERY_MODES``.
        target: Package name for per-package queries.
        edge_filter: Which dependency declarations count as edges.
        workers: Threads used to parse package files (1 = serial).
        json_output: Render JSON instead of plain lines.
    """

    index_path: Path
    mode: str
    target: Optional[str] = None
    edge_filter: EdgeFilter = field(default_factory=EdgeFilter)
    workers: int = 1
    json_output: bool = False

    def __post_init__(self):
        if self.mode not in QUERY_MODES:
            raise ConfigurationError(f"unknown query mode {self.mode!r}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")


def cargo_home(
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Locate the cargo home directory.

    ``$CARGO_HOME`` wins unless it is blank or a legacy multirust path; a
    relative value is taken relative to ``cwd``.  Otherwise ``home/.cargo``.
    """
    environ = os.environ if environ is None else environ
    value = environ.get(CARGO_HOME_ENV)
    if value is not None:
        if not value.strip() or any(m in value for m in _LEGACY_CARGO_HOME_MARKERS):
            logger.debug("Ignoring %s=%r", CARGO_HOME_ENV, value)
            value = None

    if value is not None:
        base = cwd if cwd is not None else Path.cwd()
        return base / value

    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return None
    return home / ".cargo"


def default_index_path(
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Default crates.io index location inside the cargo home."""
    base = cargo_home(environ=environ, cwd=cwd, home=home)
    if base is None:
        return None
    return base / "registry" / "index" / INDEX_DIR


def resolve_index_path(
    explicit: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Path:
    """Resolve the index root from a flag value or the cargo home.

    Raises:
        ConfigurationError: If no location can be determined, or the chosen
            location does not exist or is not a directory.
    """
    if explicit:
        path = Path(explicit)
    else:
        path = default_index_path(environ=environ, cwd=cwd, home=home)
        if path is None:
            raise ConfigurationError(
                "no index specified and unable to locate it in ~/.cargo"
            )
        logger.debug("Using default index %s", path)

    if not path.exists():
        raise ConfigurationError(f"index {path} does not exist")
    if not path.is_dir():
        raise ConfigurationError(f"index {path} is not a directory")
    return path
