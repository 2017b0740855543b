"""Error hierarchy for revdeps.

Every failure surfaces as a ``RevdepsError`` subclass so the CLI can print a
single diagnostic naming the kind, the offending file/line where known, and the
underlying cause.
"""

from typing import Optional


class RevdepsError(Exception):
    """Base exception for all revdeps errors."""

    @property
    def kind(self) -> str:
        """Short error kind shown in diagnostics (the class name)."""
        return type(self).__name__


class ConfigurationError(RevdepsError):
    """No index location could be determined, or it does not exist."""


class IndexIOError(RevdepsError):
    """Reading an index entry failed after it was discovered."""

    def __init__(self, source: str, cause: Exception):
        self.source = source
        self.cause = cause
        super().__init__(f"could not read {source}: {cause}")


class ParseError(RevdepsError):
    """A record line failed JSON, version, or requirement parsing.

    ``source`` and ``lineno`` are filled in by the index assembler once the
    line is known to belong to a particular file.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        lineno: Optional[int] = None,
    ):
        self.message = message
        self.source = source
        self.lineno = lineno
        super().__init__(message)

    def with_location(self, source: str, lineno: int) -> "ParseError":
        """Return a copy of this error pinned to ``source:lineno``."""
        return ParseError(self.message, source=source, lineno=lineno)

    def __str__(self) -> str:
        if self.source is None:
            return self.message
        if self.lineno is None:
            return f"{self.source}: {self.message}"
        return f"{self.source}:{self.lineno}: {self.message}"


class ConsistencyError(RevdepsError):
    """A package blob holds records under more than one name.

    Also raised when two different sources both claim the same package.
    """

    def __init__(self, source: str, expected: str, found: str, message: str = ""):
        self.source = source
        self.expected = expected
        self.found = found
        if not message:
            message = (
                f"{source}: records for both {expected!r} and {found!r} "
                f"in one package file"
            )
        super().__init__(message)


class QueryError(RevdepsError):
    """A query target name is syntactically invalid."""
