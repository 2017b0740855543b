"""revdeps — Reverse-dependency queries over a package-registry index."""

from revdeps.errors import (
    ConfigurationError,
    ConsistencyError,
    IndexIOError,
    ParseError,
    QueryError,
    RevdepsError,
)
from revdeps.record import (
    Comparator,
    Dependency,
    PackageVersionRecord,
    VersionRequirement,
    parse_record,
    parse_requirement,
    parse_version,
)
from revdeps.index import Index, assemble_index, parse_blob
from revdeps.graph import (
    DependencyGraph,
    EdgeFilter,
    ReverseDependencyIndex,
    build_graph,
)
from revdeps.query import QueryEngine, validate_package_name
from revdeps.report import QueryResult
from revdeps.config import RunConfig, resolve_index_path
from revdeps.loader import load_blobs
from revdeps.pipeline import RunResult, StageResult, execute_query, run_query

__all__ = [
    # Errors
    "RevdepsError",
    "ConfigurationError",
    "IndexIOError",
    "ParseError",
    "ConsistencyError",
    "QueryError",
    # Record Parser
    "parse_record",
    "parse_requirement",
    "parse_version",
    "PackageVersionRecord",
    "Dependency",
    "VersionRequirement",
    "Comparator",
    # Index Assembler
    "Index",
    "assemble_index",
    "parse_blob",
    # Graph
    "DependencyGraph",
    "ReverseDependencyIndex",
    "EdgeFilter",
    "build_graph",
    # Query Engine
    "QueryEngine",
    "validate_package_name",
    # Result Presenter
    "QueryResult",
    # Configuration / loading
    "RunConfig",
    "resolve_index_path",
    "load_blobs",
    # Pipeline
    "run_query",
    "execute_query",
    "RunResult",
    "StageResult",
]
