"""
Data model
==========

Each row of the ACLED export is converted into an `Event` object. Derived
tables (monthly buckets, category summaries, graph edges and nodes) get their
own record types too.

Everything is immutable (`frozen=True`) so that:
- events cannot be accidentally modified after projection, and
- every pipeline stage builds a new table instead of editing the old one.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import date
from typing import Optional, Tuple

@dataclass(frozen=True)
class Event:
    """One conflict event.

    Fields are the curated subset of ACLED columns the pipeline needs.
    """
    event_id_cnty: str
    event_date: date
    year: int
    event_type: str
    sub_event_type: str
    actor1: str
    actor2: str
    admin1: str
    admin2: str
    location: str
    latitude: Optional[float]
    longitude: Optional[float]
    fatalities: int

    def month(self) -> date:
        """First day of the month containing the event date."""
        return self.event_date.replace(day=1)

EVENT_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(Event))

@dataclass(frozen=True)
class MonthlyBucket:
    month: date
    total_fatalities: int

@dataclass(frozen=True)
class CategorySummary:
    """One row of a grouped summary (event type, sub-event type or actor)."""
    category: str
    total_fatalities: int
    event_count: int

# The event-type table is the categorical summary keyed on `event_type`.
EventTypeSummary = CategorySummary

@dataclass(frozen=True)
class ActorEdge:
    """Directed interaction between two actors.

    (A, B) and (B, A) are different edges.
    """
    source: str
    target: str
    weight: int
    total_fatalities: int

@dataclass(frozen=True)
class ActorNode:
    id: str
    label: str
