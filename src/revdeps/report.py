"""Result Presenter — deterministic rendering of query results.

One line per item: the package name, followed by its version or count where
the query has one.  Name lists and milestones are sorted by name here,
whatever order the query produced them in; rankings keep their
count-descending order with ties broken by name.

Pure formatting.  The only side effect is writing to a caller-supplied sink.
"""

import json
from dataclasses import dataclass, field
from typing import Iterable, Optional, TextIO

# ── Constants ──

MODE_REVDEPS = "revdeps"
MODE_TREVDEPS = "trevdeps"
MODE_MILESTONES = "milestones"
MODE_REVDEP_RANKING = "revdeps-ranking"
MODE_TREVDEP_RANKING = "trevdeps-ranking"

QUERY_MODES = frozenset({
    MODE_REVDEPS,
    MODE_TREVDEPS,
    MODE_MILESTONES,
    MODE_REVDEP_RANKING,
    MODE_TREVDEP_RANKING,
})

_RANKED_MODES = frozenset({MODE_REVDEP_RANKING, MODE_TREVDEP_RANKING})


@dataclass
class QueryResult:
    """Output of one query, ready for rendering.

    Attributes:
        mode: Which query produced the rows (one of ``QUERY_MODES``).
        target: Queried package name, for per-package queries.
        rows: ``(name, value)`` pairs; ``value`` is None for plain name lists,
            a version for milestones, a count for rankings.
    """

    mode: str
    target: Optional[str] = None
    rows: list[tuple[str, object]] = field(default_factory=list)

    @classmethod
    def from_names(cls, mode: str, target: str, names: Iterable[str]) -> "QueryResult":
        return cls(mode=mode, target=target, rows=[(n, None) for n in names])

    def sorted_rows(self) -> list[tuple[str, object]]:
        if self.mode in _RANKED_MODES:
            return sorted(self.rows, key=lambda row: (-row[1], row[0]))
        return sorted(self.rows, key=lambda row: row[0])

    def as_lines(self) -> list[str]:
        """Render one line per row."""
        lines = []
        for name, value in self.sorted_rows():
            lines.append(name if value is None else f"{name} {value}")
        return lines

    def as_text(self) -> str:
        lines = self.as_lines()
        return "\n".join(lines) + "\n" if lines else ""

    def as_dict(self) -> dict:
        """JSON-serializable form of the result."""
        data: dict = {"mode": self.mode}
        if self.target is not None:
            data["target"] = self.target
        rows = self.sorted_rows()
        if self.mode == MODE_MILESTONES:
            data["results"] = [{"name": n, "version": str(v)} for n, v in rows]
        elif self.mode in _RANKED_MODES:
            data["results"] = [{"name": n, "count": v} for n, v in rows]
        else:
            data["results"] = [n for n, _ in rows]
        return data

    def write(self, sink: TextIO, json_output: bool = False) -> None:
        """Write the rendered result to ``sink``."""
        if json_output:
            sink.write(json.dumps(self.as_dict(), indent=2) + "\n")
        else:
            sink.write(self.as_text())
