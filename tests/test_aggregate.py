from datetime import date

import pytest

from conflictnet.aggregate import (
    actor_summary, category_summary, event_type_summary, filter_date_range, monthly_fatalities,
)
from conflictnet.models import CategorySummary, MonthlyBucket
from tests.conftest import make_event


def test_monthly_buckets_scenario():
    events = [
        make_event(event_date=date(2018, 2, 1), fatalities=2),
        make_event(event_date=date(2018, 1, 5), fatalities=10),
        make_event(event_date=date(2018, 1, 20), fatalities=5),
    ]
    assert monthly_fatalities(events) == [
        MonthlyBucket(date(2018, 1, 1), 15),
        MonthlyBucket(date(2018, 2, 1), 2),
    ]


def test_monthly_gaps_not_filled_and_sum_preserved():
    events = [
        make_event(event_date=date(2019, 12, 31), fatalities=4),
        make_event(event_date=date(2019, 3, 1), fatalities=0),
        make_event(event_date=date(2020, 1, 1), fatalities=7),
    ]
    buckets = monthly_fatalities(events)
    assert [b.month for b in buckets] == [date(2019, 3, 1), date(2019, 12, 1), date(2020, 1, 1)]
    assert sum(b.total_fatalities for b in buckets) == sum(e.fatalities for e in events)


def test_monthly_empty():
    assert monthly_fatalities([]) == []


def test_event_type_summary_order_and_ties():
    events = [
        make_event(event_type="Protests", fatalities=0),
        make_event(event_type="Riots", fatalities=3),
        make_event(event_type="Battles", fatalities=2),
        make_event(event_type="Battles", fatalities=1),
        make_event(event_type="battles", fatalities=9),
        make_event(event_type="Protests", fatalities=0),
    ]
    rows = event_type_summary(events)
    assert rows == [
        CategorySummary("battles", 9, 1),
        CategorySummary("Battles", 3, 2),
        CategorySummary("Riots", 3, 1),
        CategorySummary("Protests", 0, 2),
    ]
    assert sum(r.event_count for r in rows) == len(events)
    assert sum(r.total_fatalities for r in rows) == sum(e.fatalities for e in events)


def test_category_summary_by_sub_event_type():
    events = [
        make_event(sub_event_type="Air/drone strike", fatalities=4),
        make_event(sub_event_type="Shelling/artillery/missile attack", fatalities=4),
        make_event(sub_event_type="Air/drone strike", fatalities=1),
    ]
    rows = category_summary(events, "sub_event_type")
    assert [(r.category, r.event_count) for r in rows] == [
        ("Air/drone strike", 2), ("Shelling/artillery/missile attack", 1),
    ]


def test_category_summary_rejects_numeric_field():
    with pytest.raises(ValueError):
        category_summary([], "fatalities")


def test_actor_summary_counts_each_side_once():
    events = [
        make_event("Houthis", "AQAP", fatalities=5),
        make_event("AQAP", "Houthis", fatalities=1),
        make_event("Houthis", "Houthis", fatalities=2),
        make_event("Protesters", "", fatalities=0),
    ]
    rows = {r.category: (r.total_fatalities, r.event_count) for r in actor_summary(events)}
    assert rows == {"Houthis": (8, 3), "AQAP": (6, 2), "Protesters": (0, 1)}


def test_filter_date_range_inclusive():
    events = [make_event(event_date=date(2014, 1, d)) for d in (1, 15, 31)]
    kept = filter_date_range(events, date(2014, 1, 15), date(2014, 1, 31))
    assert [e.event_date.day for e in kept] == [15, 31]
    assert filter_date_range(events) == events
