"""Dependency Graph Builder and Reverse-Dependency Index.

The forward graph works at package granularity: ``A -> B`` exists if *any*
version of A declares a dependency on B that the edge filter accepts.  Targets
that never appear in the index are still nodes (external or unpublished
packages).  The reverse index inverts every edge once; both structures are
read-only after construction.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from revdeps.index import Index
from revdeps.record import DEPENDENCY_KINDS, KIND_NORMAL, Dependency, PackageVersionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeFilter:
    """Which declarations count as graph edges.

    Attributes:
        kinds: Dependency kinds that create edges.  Defaults to runtime
            ("normal") dependencies only.
        include_optional: Whether optional (feature-gated) dependencies count.
        include_yanked: Whether yanked versions contribute edges.
    """

    kinds: frozenset[str] = field(default_factory=lambda: frozenset({KIND_NORMAL}))
    include_optional: bool = True
    include_yanked: bool = True

    def __post_init__(self):
        unknown = set(self.kinds) - DEPENDENCY_KINDS
        if unknown:
            raise ValueError(f"Unknown dependency kinds: {sorted(unknown)}")

    def accepts_record(self, record: PackageVersionRecord) -> bool:
        return self.include_yanked or not record.yanked

    def accepts(self, dep: Dependency) -> bool:
        if dep.kind not in self.kinds:
            return False
        return self.include_optional or not dep.optional


class DependencyGraph:
    """Directed package-level dependency graph (adjacency sets)."""

    def __init__(self):
        self._edges: dict[str, set[str]] = {}

    def add_node(self, name: str) -> None:
        self._edges.setdefault(name, set())

    def add_edge(self, source: str, target: str) -> None:
        """Add ``source -> target``.  Adding an existing edge is a no-op."""
        self.add_node(target)
        self._edges.setdefault(source, set()).add(target)

    def dependencies(self, name: str) -> frozenset[str]:
        """Direct dependencies of ``name`` (empty for unknown nodes)."""
        return frozenset(self._edges.get(name, ()))

    def has_edge(self, source: str, target: str) -> bool:
        return target in self._edges.get(source, ())

    def nodes(self) -> list[str]:
        return sorted(self._edges)

    def edges(self) -> Iterator[tuple[str, str]]:
        """Every ``(source, target)`` pair, unordered."""
        for source, targets in self._edges.items():
            for target in targets:
                yield source, target

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._edges.values())

    def __contains__(self, name: object) -> bool:
        return name in self._edges

    def __len__(self) -> int:
        return len(self._edges)


def build_graph(index: Index, edge_filter: EdgeFilter | None = None) -> DependencyGraph:
    """Derive the package-level dependency graph from an index.

    Every index key becomes a node even when it declares nothing, and every
    accepted dependency target becomes a node even when it is not in the index.
    Runs in O(total dependency declarations).
    """
    edge_filter = edge_filter or EdgeFilter()
    graph = DependencyGraph()
    for name, records in index.items():
        graph.add_node(name)
        for record in records:
            if not edge_filter.accepts_record(record):
                continue
            for dep in record.deps:
                if edge_filter.accepts(dep):
                    graph.add_edge(name, dep.target_name)

    logger.info("Graph built: %d nodes, %d edges", len(graph), graph.edge_count)
    return graph


class ReverseDependencyIndex:
    """Inverted adjacency: package name -> packages with an edge into it."""

    def __init__(self, dependents: dict[str, frozenset[str]]):
        self._dependents = dependents

    @classmethod
    def from_graph(cls, graph: DependencyGraph) -> "ReverseDependencyIndex":
        """Invert every edge of ``graph`` in a single O(E) pass."""
        inverted: dict[str, set[str]] = {}
        for source, target in graph.edges():
            inverted.setdefault(target, set()).add(source)
        return cls({name: frozenset(sources) for name, sources in inverted.items()})

    def dependents(self, name: str) -> frozenset[str]:
        """Packages with a direct edge into ``name`` (empty if none)."""
        return self._dependents.get(name, frozenset())

    def targets(self) -> list[str]:
        """Every node with at least one dependent, sorted."""
        return sorted(self._dependents)

    def __contains__(self, name: object) -> bool:
        return name in self._dependents

    def __len__(self) -> int:
        return len(self._dependents)
