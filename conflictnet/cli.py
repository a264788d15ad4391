"""
conflictnet Command Line Interface (CLI)
========================================

Run the whole pipeline on an ACLED export:

    python -m conflictnet.cli run "data/ACLED_Yemen_2014-2024.csv" -o out/

or print a grouped summary:

    python -m conflictnet.cli summary "data/ACLED_Yemen_2014-2024.csv" --by event_type

Exit status:
    0  success
    1  fatal error (the message names the failing stage)
    2  bad command line
    3  finished, but some rows could not be parsed and were left out
"""

from __future__ import annotations
from datetime import date
from pathlib import Path
from typing import List, Optional
import argparse
import logging
import sys

from .aggregate import CATEGORY_FIELDS
from .config import DATE_POLICIES, DEFAULT_ALLOW_LIST, PipelineConfig
from .engine import ConflictPipeline, PipelineResult
from .errors import PipelineError, RowErrors
from .export import ExportBatch

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ROW_ERRORS = 3

# How many bad rows are listed by id on the terminal.
MAX_LISTED_ERRORS = 20


def _iso_date(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {s!r}") from None


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="conflictnet", description="ACLED event tables and actor network")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")
    sub = ap.add_subparsers(dest="command", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", help="ACLED export (.csv or .xlsx)")
        p.add_argument("--delimiter", default=",", help="Input field delimiter (default ',')")
        p.add_argument("--date-policy", choices=DATE_POLICIES, default="skip",
                       help="skip: leave bad rows out and report them; fail: abort on any bad row")
        p.add_argument("--start", type=_iso_date, help="Only events on/after this date")
        p.add_argument("--end", type=_iso_date, help="Only events on/before this date")
        p.add_argument("--top", type=int, default=10, help="Rows to print (default 10)")

    run = sub.add_parser("run", help="Run every stage and export the Gephi files")
    _common(run)
    run.add_argument("-o", "--out", required=True, help="Output directory")
    run.add_argument("--allow", action="append", metavar="EVENT_TYPE",
                     help="Event type eligible for the actor graph (repeatable). "
                          f"Default: {', '.join(sorted(DEFAULT_ALLOW_LIST))}")
    run.add_argument("--gexf", action="store_true", help="Also write actors.gexf")
    run.add_argument("--summaries", action="store_true",
                     help="Also write monthly_fatalities.csv, event_types.csv and actors.csv")
    run.add_argument("--charts", action="store_true", help="Also write PNG charts")
    run.add_argument("--report", metavar="PATH", help="Also write a DOCX report")

    summ = sub.add_parser("summary", help="Print fatalities and event counts per group")
    _common(summ)
    summ.add_argument("--by", choices=CATEGORY_FIELDS + ("actor",), default="event_type")
    return ap


def _config(args) -> PipelineConfig:
    allow = getattr(args, "allow", None)
    return PipelineConfig(
        allow_list=frozenset(allow) if allow else DEFAULT_ALLOW_LIST,
        date_policy=args.date_policy,
        delimiter=args.delimiter,
        start_date=args.start,
        end_date=args.end,
        top_n=args.top,
    )


def _report_row_errors(errors) -> None:
    print(f"{len(errors)} row(s) could not be parsed:", file=sys.stderr)
    for e in errors[:MAX_LISTED_ERRORS]:
        print(f"  row {e.row} [{e.event_id or '-'}] {e.kind}: {e.reason}: {e.value!r}", file=sys.stderr)
    if len(errors) > MAX_LISTED_ERRORS:
        print(f"  ... ({len(errors)} total, showing {MAX_LISTED_ERRORS})", file=sys.stderr)


def _print_result(result: PipelineResult, top: int) -> None:
    print(f"Events: {len(result.events):,} of {result.input_rows:,} rows | "
          f"fatalities: {result.total_fatalities:,}")
    if result.monthly:
        print(f"Months: {len(result.monthly)} ({result.monthly[0].month:%Y-%m} to {result.monthly[-1].month:%Y-%m})")
    print("Event types:")
    for r in result.event_types[:top]:
        print(f"  {r.category:<32} fatalities={r.total_fatalities:<8} events={r.event_count}")
    print(f"Graph: {len(result.graph.edges)} edges, {len(result.graph.nodes)} nodes")


def cmd_run(args) -> int:
    pipeline = ConflictPipeline(_config(args))
    result = pipeline.run(args.input)

    # Tables, charts and report are staged together and only land on disk
    # once every requested step has succeeded.
    with ExportBatch() as batch:
        written = pipeline.export(result, args.out, gexf=args.gexf, summaries=args.summaries, batch=batch)
        try:
            if args.charts:
                from .charts import plot_monthly, plot_summary
                out = Path(args.out)
                if result.monthly:
                    dest = out / "monthly_fatalities.png"
                    plot_monthly(result.monthly, batch.temp_path(dest))
                    written["monthly_chart"] = dest
                if result.event_types:
                    dest = out / "event_types.png"
                    plot_summary(result.event_types, batch.temp_path(dest), top_n=args.top)
                    written["event_type_chart"] = dest
            if args.report:
                from .report import ReportConfig, generate_docx_report
                cfg = ReportConfig(top_n=args.top, allow_list=sorted(pipeline.config.allow_list))
                dest = Path(args.report)
                generate_docx_report(result, str(batch.temp_path(dest)), config=cfg)
                written["report"] = dest
        except (ImportError, ValueError) as e:
            raise PipelineError(str(e), stage="report") from e

    _print_result(result, args.top)
    for name, path in written.items():
        print(f"Wrote {name}: {path}")

    if result.row_errors:
        _report_row_errors(result.row_errors)
        return EXIT_ROW_ERRORS
    return EXIT_OK


def cmd_summary(args) -> int:
    rows = ConflictPipeline(_config(args)).summarize(args.input, by=args.by)
    print(f"{'':<2}{args.by:<40} {'fatalities':>10} {'events':>8}")
    for r in rows[:args.top]:
        print(f"  {r.category:<40} {r.total_fatalities:>10} {r.event_count:>8}")
    if len(rows) > args.top:
        print(f"... ({len(rows)} total, showing {args.top})")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    handler = cmd_run if args.command == "run" else cmd_summary
    try:
        return handler(args)
    except RowErrors as e:
        print(f"Error [{e.stage}]: {e}", file=sys.stderr)
        _report_row_errors(e.errors)
        return EXIT_FATAL
    except PipelineError as e:
        print(f"Error [{e.stage}]: {e}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
