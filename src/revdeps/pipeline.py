"""Pipeline — runs one query end to end.

Wires Index Loader → Index Assembler → Graph Builder → Reverse-Dependency
Index → Query Engine → QueryResult.

The run is all-or-nothing: any ``RevdepsError`` propagates to the caller
unchanged and no partial result is produced.  Per-stage timings are kept on
the result for verbose logging.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from revdeps.config import RunConfig
from revdeps.graph import ReverseDependencyIndex, build_graph
from revdeps.index import Index, assemble_index
from revdeps.loader import load_blobs
from revdeps.query import QueryEngine, validate_package_name
from revdeps.report import (
    MODE_MILESTONES,
    MODE_REVDEP_RANKING,
    MODE_REVDEPS,
    MODE_TREVDEP_RANKING,
    MODE_TREVDEPS,
    QueryResult,
)

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Timing of a single pipeline stage."""

    stage: str
    duration_ms: float = 0.0


@dataclass
class RunResult:
    """Complete output of a run.

    Attributes:
        query: The rendered-ready query result.
        stages: Per-stage timings, in execution order.
        packages: Number of packages in the index.
        records: Number of version records in the index.
    """

    query: QueryResult
    stages: list[StageResult] = field(default_factory=list)
    packages: int = 0
    records: int = 0

    @property
    def total_duration_ms(self) -> float:
        return sum(s.duration_ms for s in self.stages)


def execute_query(engine: QueryEngine, mode: str, target: Optional[str] = None) -> QueryResult:
    """Run one query mode against a prepared engine."""
    if mode in (MODE_REVDEPS, MODE_TREVDEPS):
        if target is None:
            raise ValueError(f"mode {mode!r} needs a target package")
        validate_package_name(target)
        if target not in engine.index:
            logger.info("Package %s is not in the index", target)
        if mode == MODE_REVDEPS:
            names = engine.direct_reverse_deps(target)
        else:
            names = engine.transitive_reverse_deps(target)
        return QueryResult.from_names(mode, target, names)

    if mode == MODE_MILESTONES:
        return QueryResult(mode=mode, rows=list(engine.all_milestones()))
    if mode == MODE_REVDEP_RANKING:
        return QueryResult(mode=mode, rows=list(engine.reverse_dep_counts()))
    if mode == MODE_TREVDEP_RANKING:
        return QueryResult(mode=mode, rows=list(engine.transitive_reverse_dep_counts()))
    raise ValueError(f"unknown query mode {mode!r}")


def run_query(config: RunConfig) -> RunResult:
    """Load the index at ``config.index_path`` and answer one query.

    Raises:
        RevdepsError: Any configuration, I/O, parse, consistency or query
            failure.  Nothing is returned in that case.
    """
    stages: list[StageResult] = []

    # Validate the target before paying for ingestion
    if config.target is not None:
        validate_package_name(config.target)

    stage_start = time.monotonic()
    blobs = load_blobs(config.index_path)
    stages.append(StageResult("load", _elapsed_ms(stage_start)))

    stage_start = time.monotonic()
    index: Index = assemble_index(blobs, workers=config.workers)
    stages.append(StageResult("assemble", _elapsed_ms(stage_start)))

    stage_start = time.monotonic()
    graph = build_graph(index, config.edge_filter)
    engine = QueryEngine(index, graph, ReverseDependencyIndex.from_graph(graph))
    stages.append(StageResult("graph", _elapsed_ms(stage_start)))

    stage_start = time.monotonic()
    query = execute_query(engine, config.mode, config.target)
    stages.append(StageResult("query", _elapsed_ms(stage_start)))

    result = RunResult(
        query=query,
        stages=stages,
        packages=len(index),
        records=index.record_count,
    )
    for s in stages:
        logger.debug("Stage %s: %.1f ms", s.stage, s.duration_ms)
    logger.info(
        "Query %s finished in %.1f ms (%d packages, %d records)",
        config.mode, result.total_duration_ms, result.packages, result.records,
    )
    return result


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000
