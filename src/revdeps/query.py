"""Query Engine — reverse-dependency and milestone queries.

Holds read-only references to the Index, the forward graph and the reverse
index.  Unknown package names are never an error: they simply have no
dependents and no milestone.  Results are returned as sets or sorted lists;
presentation order is the Result Presenter's job.
"""

import logging
import re
from collections import deque
from typing import Optional

import semver

from revdeps.errors import QueryError
from revdeps.graph import DependencyGraph, EdgeFilter, ReverseDependencyIndex, build_graph
from revdeps.index import Index

logger = logging.getLogger(__name__)

# ── Constants ──

MILESTONE = semver.Version(1, 0, 0)

MAX_NAME_LENGTH = 64
_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_package_name(name: str) -> str:
    """Check that ``name`` could be a package name at all.

    Names absent from the index pass; only syntactically impossible names
    (empty, whitespace, punctuation, over-long) are rejected.

    Raises:
        QueryError: If the name is invalid.
    """
    if not name:
        raise QueryError("package name is empty")
    if len(name) > MAX_NAME_LENGTH:
        raise QueryError(
            f"package name {name[:20]!r}... is longer than {MAX_NAME_LENGTH} characters"
        )
    if not _NAME_RE.match(name):
        raise QueryError(
            f"invalid package name {name!r}: only letters, digits, '-' and '_' allowed"
        )
    return name


class QueryEngine:
    """Answers structural queries over one immutable index snapshot."""

    def __init__(
        self,
        index: Index,
        graph: DependencyGraph,
        reverse: Optional[ReverseDependencyIndex] = None,
    ):
        self.index = index
        self.graph = graph
        if reverse is None:
            reverse = ReverseDependencyIndex.from_graph(graph)
        self.reverse = reverse

    @classmethod
    def from_index(cls, index: Index, edge_filter: Optional[EdgeFilter] = None) -> "QueryEngine":
        """Build the graph and reverse index for ``index`` in one go."""
        graph = build_graph(index, edge_filter)
        return cls(index, graph, ReverseDependencyIndex.from_graph(graph))

    # ── Reverse Dependencies ──

    def direct_reverse_deps(self, target: str) -> frozenset[str]:
        """Packages with an edge into ``target``."""
        return self.reverse.dependents(target)

    def transitive_reverse_deps(self, target: str) -> frozenset[str]:
        """Every package that reaches ``target`` by following reverse edges.

        Breadth-first with a visited set, so dependency cycles terminate.
        ``target`` itself is never part of the result, even inside a cycle.
        """
        visited = {target}
        queue = deque([target])
        while queue:
            node = queue.popleft()
            for dependent in self.reverse.dependents(node):
                if dependent not in visited:
                    visited.add(dependent)
                    queue.append(dependent)
        visited.discard(target)
        return frozenset(visited)

    def reverse_dep_counts(self) -> list[tuple[str, int]]:
        """``(name, direct dependent count)``, most depended-on first."""
        counts = [(name, len(self.reverse.dependents(name))) for name in self.reverse.targets()]
        return _rank(counts)

    def transitive_reverse_dep_counts(self) -> list[tuple[str, int]]:
        """``(name, transitive dependent count)``, most depended-on first.

        Runs one breadth-first walk per target, O(N * (N + E)) overall.  Fine
        for a test index; minutes to hours on a full crates.io checkout.
        """
        counts = [
            (name, len(self.transitive_reverse_deps(name)))
            for name in self.reverse.targets()
        ]
        return _rank(counts)

    # ── Milestones ──

    def milestone_version(self, package: str) -> Optional[semver.Version]:
        """Lowest version of ``package`` that is >= 1.0.0, by SemVer precedence.

        File order is irrelevant; ``1.0.0-rc.1`` sorts below 1.0.0 and does
        not qualify.  Returns None for unknown packages or when no version
        qualifies.
        """
        qualifying = [
            record.vers for record in self.index.versions(package)
            if record.vers >= MILESTONE
        ]
        if not qualifying:
            return None
        return min(qualifying)

    def all_milestones(self) -> list[tuple[str, semver.Version]]:
        """``(name, milestone)`` for every package that has one, sorted by name."""
        milestones = []
        for name in self.index.names():
            version = self.milestone_version(name)
            if version is not None:
                milestones.append((name, version))
        logger.debug("%d of %d packages reached 1.0", len(milestones), len(self.index))
        return milestones


def _rank(counts: list[tuple[str, int]]) -> list[tuple[str, int]]:
    return sorted(counts, key=lambda item: (-item[1], item[0]))
