from __future__ import annotations

"""
conflictnet report generator
----------------------------
Builds a DOCX report from a PipelineResult: dataset overview, data quality
(rows that failed to parse), the monthly and event-type tables with their
charts, and the strongest actor-pair edges.

python-docx and matplotlib are imported lazily, only when a report is asked
for.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import io
import os
import tempfile

from .charts import plot_monthly, plot_summary
from .engine import PipelineResult


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Conflict Event Analysis"
    subtitle: str = "Trends, event types and actor network"
    dataset_name: str = "ACLED export"

    # How many rows to show in summary tables / charts
    top_n: int = 10
    # How many bad rows to list by id
    max_row_errors: int = 20

    allow_list: List[str] = field(default_factory=list)


def generate_docx_report(result: PipelineResult, out_path: str,
                         *, config: Optional[ReportConfig] = None) -> str:
    config = config or ReportConfig()

    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    if not result.events:
        raise ValueError("No events to report on (nothing was projected).")

    # Charts are embedded from memory so the scratch directory can go right away.
    with tempfile.TemporaryDirectory(prefix="conflictnet_report_") as tmpdir:
        monthly_png = io.BytesIO(plot_monthly(result.monthly, os.path.join(tmpdir, "monthly.png")).read_bytes())
        types_png = io.BytesIO(plot_summary(result.event_types, os.path.join(tmpdir, "event_types.png"),
                                            top_n=config.top_n).read_bytes())

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(header: List[str], rows: List[List[str]]) -> None:
        t = doc.add_table(rows=1, cols=len(header))
        for i, h in enumerate(header):
            t.rows[0].cells[i].text = h
        for row in rows:
            cells = t.add_row().cells
            for i, v in enumerate(row):
                cells[i].text = v

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    dates = [e.event_date for e in result.events]
    doc.add_paragraph("")
    _kv("Dataset", f"{config.dataset_name} ({os.path.basename(result.source)})")
    _kv("Rows read", f"{result.input_rows:,}")
    _kv("Events analysed", f"{len(result.events):,}")
    _kv("Date range", f"{min(dates).isoformat()} to {max(dates).isoformat()}")
    _kv("Total fatalities", f"{result.total_fatalities:,}")

    doc.add_heading("Data quality", level=1)
    if not result.row_errors:
        doc.add_paragraph("Every row was parsed successfully.")
    else:
        doc.add_paragraph(
            f"{len(result.row_errors)} row(s) could not be parsed and are excluded from all tables."
        )
        _table(["Row", "Event id", "Field", "Value"], [
            [str(e.row), e.event_id, e.kind, str(e.value)]
            for e in result.row_errors[:config.max_row_errors]
        ])

    doc.add_heading("Fatalities over time", level=1)
    doc.add_picture(monthly_png, width=Inches(6.5))
    peak = max(result.monthly, key=lambda b: b.total_fatalities)
    doc.add_paragraph(f"Deadliest month: {peak.month:%B %Y} ({peak.total_fatalities:,} fatalities).")

    doc.add_heading("Event types", level=1)
    doc.add_picture(types_png, width=Inches(6.0))
    _table(["Event type", "Fatalities", "Events"], [
        [r.category, f"{r.total_fatalities:,}", f"{r.event_count:,}"]
        for r in result.event_types[:config.top_n]
    ])

    doc.add_heading("Actor network", level=1)
    g = result.graph
    doc.add_paragraph(
        f"{len(g.edges):,} directed actor pairs between {len(g.nodes):,} actors"
        + (f", from event types: {', '.join(sorted(config.allow_list))}." if config.allow_list else ".")
    )
    _table(["Source", "Target", "Events", "Fatalities"], [
        [e.source, e.target, str(e.weight), f"{e.total_fatalities:,}"]
        for e in g.edges[:config.top_n]
    ])

    try:
        from . import __version__ as version
    except ImportError:
        version = "unknown"
    from datetime import datetime as _dt
    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"conflictnet version: {version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
