"""
Pipeline configuration
======================

All thresholds are parameters passed in by the caller; nothing is read from
the environment.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, Optional

from .errors import ConfigError
from .models import EVENT_FIELDS

# The two event types that carry direct armed interaction between actors.
# Chosen from the event-type summary: they hold most of the fatalities.
DEFAULT_ALLOW_LIST: FrozenSet[str] = frozenset({"Battles", "Explosions/Remote violence"})

DATE_POLICIES = ("skip", "fail")


def default_columns() -> Dict[str, str]:
    """Map each `Event` field to the ACLED column of the same name."""
    return {name: name for name in EVENT_FIELDS}


@dataclass
class PipelineConfig:
    """Knobs for one pipeline run."""
    allow_list: FrozenSet[str] = DEFAULT_ALLOW_LIST
    # Event field -> source column name
    columns: Dict[str, str] = field(default_factory=default_columns)
    # "skip": drop bad rows and report them. "fail": report them and abort.
    date_policy: str = "skip"
    delimiter: str = ","
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    edges_file: str = "edges.csv"
    nodes_file: str = "nodes.csv"
    top_n: int = 10

    def validate(self) -> "PipelineConfig":
        if not self.allow_list:
            raise ConfigError("allow_list must contain at least one event type")
        if self.date_policy not in DATE_POLICIES:
            raise ConfigError(f"date_policy must be one of {DATE_POLICIES}, got {self.date_policy!r}")
        unknown = sorted(set(self.columns) - set(EVENT_FIELDS))
        if unknown:
            raise ConfigError(f"Unknown event field(s) in column map: {unknown}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ConfigError(f"start_date {self.start_date} is after end_date {self.end_date}")
        if len(self.delimiter) != 1:
            raise ConfigError("delimiter must be a single character")
        if self.top_n < 1:
            raise ConfigError("top_n must be >= 1")
        return self
