"""
Error types
===========

Fatal errors derive from `PipelineError` and carry the name of the stage
that failed, so the CLI can tell the user where things went wrong.

Per-row problems (bad dates, bad fatality counts) are `RowError` objects.
They are collected during projection instead of raised one by one; under
the "fail" date policy the whole list is raised at once as `RowErrors`.
"""

from __future__ import annotations
from typing import List, Optional, Sequence


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""

    stage = "pipeline"

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigError(PipelineError):
    stage = "config"


class SourceReadError(PipelineError):
    """The input file could not be read."""
    stage = "load"


class SchemaError(PipelineError):
    """A required column is missing from the input table, or matches more than one."""

    stage = "project"

    def __init__(self, missing: Sequence[str], available: Sequence[str],
                 duplicates: Sequence[str] = ()) -> None:
        self.missing = list(missing)
        self.available = list(available)
        self.duplicates = list(duplicates)
        problems = []
        if self.missing:
            problems.append(f"Missing required column(s): {', '.join(self.missing)}.")
        if self.duplicates:
            problems.append(f"Ambiguous column(s), more than one match: {', '.join(self.duplicates)}.")
        super().__init__(" ".join(problems) + f" Available={self.available}")


class ExportError(PipelineError):
    """The destination could not be written."""
    stage = "export"


class SerializationError(PipelineError):
    """A value cannot be encoded in the output format."""
    stage = "export"


class RowError(ValueError):
    """A single input row that could not be projected."""

    kind = "row"

    def __init__(self, row: int, event_id: str, value: object, reason: str) -> None:
        self.row = row
        self.event_id = event_id
        self.value = value
        self.reason = reason
        super().__init__(f"row {row} ({event_id or 'no id'}): {reason}: {value!r}")


class DateParseError(RowError):
    kind = "event_date"


class FatalitiesParseError(RowError):
    kind = "fatalities"


class RowErrors(PipelineError):
    """All row errors of a projection, raised when the policy is "fail"."""

    stage = "project"

    def __init__(self, errors: List[RowError]) -> None:
        self.errors = list(errors)
        ids = ", ".join(e.event_id or f"row {e.row}" for e in self.errors[:10])
        more = f" (+{len(self.errors) - 10} more)" if len(self.errors) > 10 else ""
        super().__init__(f"{len(self.errors)} row(s) failed to parse: {ids}{more}")
