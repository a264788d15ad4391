"""
Pipeline engine
===============

Runs the stages in dependency order:

1) load     -> raw DataFrame of strings
2) project  -> tuple of immutable Event records (+ row errors)
3) window   -> optional start/end date filter
4) monthly buckets, event-type summary and actor graph, each computed
   from the same projected tuple
5) export   -> edges.csv / nodes.csv (and optional extras)

Fatal errors are `PipelineError`s tagged with the failing stage. Row errors
are carried in the result so the caller can report them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging

from .aggregate import (
    actor_summary, category_summary, event_type_summary, filter_date_range, monthly_fatalities,
)
from .config import PipelineConfig
from .errors import RowError
from .export import ExportBatch, export_gexf, export_graph, export_monthly, export_summary
from .graph import ActorGraph, extract_graph
from .loader import load_table, project_events
from .models import CategorySummary, Event, MonthlyBucket

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produced."""
    source: str
    input_rows: int
    events: Tuple[Event, ...]
    row_errors: List[RowError]
    monthly: List[MonthlyBucket]
    event_types: List[CategorySummary]
    graph: ActorGraph

    @property
    def total_fatalities(self) -> int:
        return sum(e.fatalities for e in self.events)


@dataclass
class ConflictPipeline:
    """Five-stage batch pipeline over one ACLED export."""
    config: PipelineConfig = field(default_factory=PipelineConfig)

    def __post_init__(self) -> None:
        self.config.validate()

    def run(self, path) -> PipelineResult:
        cfg = self.config
        df = load_table(path, delimiter=cfg.delimiter)
        projection = project_events(df, columns=cfg.columns, date_policy=cfg.date_policy)

        events = projection.events
        if cfg.start_date or cfg.end_date:
            events = tuple(filter_date_range(events, cfg.start_date, cfg.end_date))
            logger.info("Date window %s..%s keeps %d of %d events",
                        cfg.start_date or "", cfg.end_date or "", len(events), len(projection.events))

        return PipelineResult(
            source=str(path),
            input_rows=projection.input_rows,
            events=events,
            row_errors=projection.errors,
            monthly=monthly_fatalities(events),
            event_types=event_type_summary(events),
            graph=extract_graph(events, cfg.allow_list),
        )

    def export(self, result: PipelineResult, out_dir, *, gexf: bool = False,
               summaries: bool = False, batch: Optional[ExportBatch] = None) -> Dict[str, Path]:
        """Write the graph files, plus GEXF and summary tables on request.

        With a `batch`, the files are only staged; the caller commits them.
        """
        if batch is None:
            with ExportBatch() as own:
                return self.export(result, out_dir, gexf=gexf, summaries=summaries, batch=own)

        out = Path(out_dir)
        edges_path, nodes_path = export_graph(
            result.graph, out, edges_file=self.config.edges_file, nodes_file=self.config.nodes_file,
            batch=batch,
        )
        written = {"edges": edges_path, "nodes": nodes_path}
        if gexf:
            written["gexf"] = export_gexf(result.graph, out / "actors.gexf", batch=batch)
        if summaries:
            written["monthly"] = export_monthly(result.monthly, out / "monthly_fatalities.csv", batch=batch)
            written["event_types"] = export_summary(result.event_types, out / "event_types.csv",
                                                    key_header="event_type", batch=batch)
            written["actors"] = export_summary(actor_summary(result.events), out / "actors.csv",
                                               key_header="actor", batch=batch)
        return written

    def summarize(self, path, by: str = "event_type") -> List[CategorySummary]:
        """Load, project and group by one field (or by actor)."""
        result = self.run(path)
        if by == "actor":
            return actor_summary(result.events)
        return category_summary(result.events, by)


def run_pipeline(path, out_dir, config: Optional[PipelineConfig] = None) -> PipelineResult:
    """Convenience wrapper: run every stage and write edges/nodes."""
    pipeline = ConflictPipeline(config or PipelineConfig())
    result = pipeline.run(path)
    pipeline.export(result, out_dir)
    return result
