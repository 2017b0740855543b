"""Index Assembler — groups raw per-package blobs into an ordered Index.

Takes ``(source, text)`` pairs from the loader (one per package file), parses
every line through the Record Parser and checks that a file only ever
describes one package.  The result is an all-or-nothing snapshot: a single bad
line or name mismatch aborts assembly.

Blob parsing is independent per file and may be spread across a thread pool.
Results are merged only after every worker has finished, and every consumer
that produces output iterates ``Index.names()``, which is sorted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Iterator, Optional

from revdeps.errors import ConsistencyError, ParseError, RevdepsError
from revdeps.record import PackageVersionRecord, parse_record

logger = logging.getLogger(__name__)

Blob = tuple[str, str]  # (source identifier, raw file text)


class Index:
    """Mapping of package name to its version records in file order.

    Never holds an empty version list, and every record's ``name`` equals its
    key.  Construct through ``assemble_index`` or ``Index.from_records``.
    """

    def __init__(self, packages: Optional[dict[str, list[PackageVersionRecord]]] = None):
        self._packages: dict[str, list[PackageVersionRecord]] = {}
        self._sources: dict[str, str] = {}
        for name, records in (packages or {}).items():
            self.add(name, records, source=name)

    @classmethod
    def from_records(cls, records: Iterable[PackageVersionRecord]) -> "Index":
        """Build an index by grouping records on their ``name`` field."""
        grouped: dict[str, list[PackageVersionRecord]] = {}
        for record in records:
            grouped.setdefault(record.name, []).append(record)
        return cls(grouped)

    def add(self, name: str, records: list[PackageVersionRecord], source: str) -> None:
        """Insert one package's records.

        Raises:
            ConsistencyError: If a record is named differently from ``name`` or
                the package was already added from another source.
        """
        if not records:
            return
        for record in records:
            if record.name != name:
                raise ConsistencyError(source, name, record.name)
        if name in self._packages:
            previous = self._sources[name]
            raise ConsistencyError(
                source, name, name,
                message=(
                    f"package {name!r} found in both {previous} and {source}"
                ),
            )
        self._packages[name] = list(records)
        self._sources[name] = source

    def names(self) -> list[str]:
        """All package names, sorted lexicographically."""
        return sorted(self._packages)

    def versions(self, name: str) -> list[PackageVersionRecord]:
        """Records for ``name`` in file order (empty for unknown packages)."""
        return list(self._packages.get(name, ()))

    def source_of(self, name: str) -> Optional[str]:
        return self._sources.get(name)

    def items(self) -> Iterator[tuple[str, list[PackageVersionRecord]]]:
        """``(name, records)`` pairs in sorted name order."""
        for name in self.names():
            yield name, self._packages[name]

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self._packages.values())

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def __repr__(self) -> str:
        return f"Index(packages={len(self)}, records={self.record_count})"


# ── Blob Parsing ──


def parse_blob(source: str, text: str) -> Optional[tuple[str, list[PackageVersionRecord]]]:
    """Parse one package file.

    Returns:
        ``(package_name, records)`` in line order, or None if the blob holds no
        records (blank lines are skipped).

    Raises:
        ParseError: For the first malformed line, pinned to ``source:lineno``.
        ConsistencyError: If a record names a different package than the first.
    """
    records: list[PackageVersionRecord] = []
    # Only "\n" separates records; JSON strings may hold U+2028 and friends
    for lineno, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            record = parse_record(line)
        except ParseError as exc:
            raise exc.with_location(source, lineno) from exc
        if records and record.name != records[0].name:
            raise ConsistencyError(source, records[0].name, record.name)
        records.append(record)

    if not records:
        logger.debug("No records in %s", source)
        return None
    return records[0].name, records


# ── Assembly ──


def assemble_index(blobs: Iterable[Blob], workers: Optional[int] = None) -> Index:
    """Parse every blob and merge the results into an ``Index``.

    Args:
        blobs: ``(source, text)`` pairs, already filtered by the loader.
        workers: Thread count for parsing.  ``None`` or ``1`` parses serially.

    Raises:
        ParseError, ConsistencyError: The first failure by source order.  When
            several blobs fail in parallel, the reported error does not depend
            on which worker finished first.
    """
    blobs = list(blobs)
    parsed: dict[str, Optional[tuple[str, list[PackageVersionRecord]]]] = {}

    if workers is not None and workers > 1 and len(blobs) > 1:
        failures: dict[str, RevdepsError] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_source = {
                executor.submit(parse_blob, source, text): source
                for source, text in blobs
            }
            for future in as_completed(future_to_source):
                source = future_to_source[future]
                try:
                    parsed[source] = future.result()
                except RevdepsError as exc:
                    failures[source] = exc
        if failures:
            raise failures[min(failures)]
    else:
        for source, text in blobs:
            parsed[source] = parse_blob(source, text)

    index = Index()
    for source in sorted(parsed):
        entry = parsed[source]
        if entry is None:
            continue
        name, records = entry
        index.add(name, records, source=source)

    logger.info(
        "Index assembled: %d packages, %d records from %d files",
        len(index), index.record_count, len(blobs),
    )
    return index
