"""
Exporter (CSV files for Gephi and charting)
===========================================

Gephi's spreadsheet importer expects:
- edges.csv  with header  Source,Target,Weight,total_fatalities
- nodes.csv  with header  Id,Label

Writes are all-or-nothing. An `ExportBatch` collects every file of one
export as a temporary file next to its destination. Only when all of them
were written successfully are they renamed into place (os.replace). If a
value cannot be encoded, or a later step of the same run fails, the temp
files are discarded and no output file is created or overwritten. If a
rename fails halfway, files already replaced are rolled back from backups.
"""

from __future__ import annotations
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar
import csv
import logging
import os
import tempfile

import pandas as pd

from .errors import ExportError, SchemaError, SerializationError
from .graph import ActorGraph, to_networkx
from .models import ActorEdge, ActorNode, CategorySummary, MonthlyBucket

logger = logging.getLogger(__name__)

EDGE_HEADER = ["Source", "Target", "Weight", "total_fatalities"]
NODE_HEADER = ["Id", "Label"]
MONTHLY_HEADER = ["month", "total_fatalities"]
SUMMARY_HEADER = ["category", "total_fatalities", "event_count"]

T = TypeVar("T")


def _check_value(v: object, rownum: int) -> None:
    # csv quoting covers delimiters, quotes and newlines, but not NUL.
    if isinstance(v, str) and "\x00" in v:
        raise SerializationError(f"row {rownum}: NUL character in value {v!r}")


class ExportBatch:
    """Temp files waiting to be moved over their destinations.

    Used as a context manager: commits on a clean exit, discards every temp
    file when the block raises.
    """

    def __init__(self) -> None:
        self.pending: List[Tuple[Path, Path]] = []

    def __enter__(self) -> "ExportBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.discard()

    def temp_path(self, dest) -> Path:
        """Reserve a temp file for `dest` (same directory, same extension)."""
        dest = Path(dest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=f".tmp{dest.suffix}")
            os.close(fd)
        except OSError as e:
            raise ExportError(f"Cannot write to {dest.parent}: {e}") from e
        tmp_path = Path(tmp)
        self.pending.append((tmp_path, dest))
        return tmp_path

    def add_table(self, dest, header: Sequence[str], rows: Iterable[Sequence[object]]) -> Path:
        """Write a CSV into a temp file for `dest`."""
        dest = Path(dest)
        tmp = self.temp_path(dest)
        try:
            with open(tmp, "w", newline="", encoding="utf-8") as f:
                w = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
                w.writerow(header)
                for i, row in enumerate(rows, start=1):
                    for v in row:
                        _check_value(v, i)
                    try:
                        w.writerow(row)
                    except (csv.Error, UnicodeEncodeError) as e:
                        raise SerializationError(f"row {i} of {dest.name}: {e}") from e
        except UnicodeEncodeError as e:
            raise SerializationError(f"{dest.name}: {e}") from e
        except OSError as e:
            raise ExportError(f"Cannot write {dest}: {e}") from e
        return dest

    def add_gexf(self, graph: ActorGraph, dest) -> Path:
        import networkx as nx

        dest = Path(dest)
        tmp = self.temp_path(dest)
        try:
            nx.write_gexf(to_networkx(graph), str(tmp))
        except OSError as e:
            raise ExportError(f"Cannot write {dest}: {e}") from e
        return dest

    def discard(self) -> None:
        for tmp, _ in self.pending:
            tmp.unlink(missing_ok=True)
        self.pending = []

    def commit(self) -> None:
        """Move every temp file into place; undo all of it if one move fails."""
        backups: List[Tuple[Path, Path]] = []
        done: List[Path] = []
        try:
            for tmp, dest in self.pending:
                if dest.exists():
                    bak = dest.with_name(f".{dest.name}.{os.getpid()}.bak")
                    os.replace(dest, bak)
                    backups.append((bak, dest))
                os.replace(tmp, dest)
                done.append(dest)
        except OSError as e:
            for dest in done:
                dest.unlink(missing_ok=True)
            for bak, dest in backups:
                os.replace(bak, dest)
            raise ExportError(f"Cannot replace output file: {e}") from e
        finally:
            self.discard()
        for bak, _ in backups:
            bak.unlink(missing_ok=True)


def _in_batch(batch: Optional[ExportBatch], fill: Callable[[ExportBatch], T]) -> T:
    """Add to the caller's batch, or write and commit right away."""
    if batch is not None:
        return fill(batch)
    with ExportBatch() as own:
        return fill(own)


def export_graph(graph: ActorGraph, out_dir, edges_file: str = "edges.csv",
                 nodes_file: str = "nodes.csv", *, batch: Optional[ExportBatch] = None) -> Tuple[Path, Path]:
    """Write the edge and node tables. Returns (edges_path, nodes_path)."""
    missing = graph.dangling()
    if missing:
        raise SerializationError(f"Edges reference actors absent from the node table: {sorted(missing)}")
    out = Path(out_dir)

    def fill(b: ExportBatch) -> Tuple[Path, Path]:
        edges_path = b.add_table(out / edges_file, EDGE_HEADER,
                                 ((e.source, e.target, e.weight, e.total_fatalities) for e in graph.edges))
        nodes_path = b.add_table(out / nodes_file, NODE_HEADER, ((n.id, n.label) for n in graph.nodes))
        return edges_path, nodes_path

    edges_path, nodes_path = _in_batch(batch, fill)
    logger.info("Exported %d edges to %s and %d nodes to %s",
                len(graph.edges), edges_path, len(graph.nodes), nodes_path)
    return edges_path, nodes_path


def export_monthly(buckets: Sequence[MonthlyBucket], path, *, batch: Optional[ExportBatch] = None) -> Path:
    return _in_batch(batch, lambda b: b.add_table(
        path, MONTHLY_HEADER, ((m.month.isoformat(), m.total_fatalities) for m in buckets)))


def export_summary(rows: Sequence[CategorySummary], path, key_header: str = "category",
                   *, batch: Optional[ExportBatch] = None) -> Path:
    header = [key_header] + SUMMARY_HEADER[1:]
    return _in_batch(batch, lambda b: b.add_table(
        path, header, ((r.category, r.total_fatalities, r.event_count) for r in rows)))


def export_gexf(graph: ActorGraph, path, *, batch: Optional[ExportBatch] = None) -> Path:
    """Write the graph as GEXF (Gephi's native format)."""
    return _in_batch(batch, lambda b: b.add_gexf(graph, path))


# ---------------- Reading exports back ----------------

def _read(path, header: Sequence[str]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    missing = [c for c in header if c not in df.columns]
    if missing:
        raise SchemaError(missing, list(df.columns))
    return df


def read_edges(path) -> List[ActorEdge]:
    df = _read(path, EDGE_HEADER)
    return [
        ActorEdge(source=s, target=t, weight=int(w), total_fatalities=int(f))
        for s, t, w, f in df[EDGE_HEADER].itertuples(index=False, name=None)
    ]


def read_nodes(path) -> List[ActorNode]:
    df = _read(path, NODE_HEADER)
    return [ActorNode(id=i, label=l) for i, l in df[NODE_HEADER].itertuples(index=False, name=None)]


def read_monthly(path) -> List[MonthlyBucket]:
    df = _read(path, MONTHLY_HEADER)
    return [
        MonthlyBucket(month=date.fromisoformat(m), total_fatalities=int(t))
        for m, t in df[MONTHLY_HEADER].itertuples(index=False, name=None)
    ]
