from datetime import date

import pandas as pd
import pytest

from conflictnet.aggregate import event_type_summary
from conflictnet.errors import (
    DateParseError, FatalitiesParseError, RowErrors, SchemaError, SourceReadError,
)
from conflictnet.graph import extract_graph
from conflictnet.loader import (
    load_table, parse_event_date, parse_fatalities, project_events, resolve_columns,
)
from tests.conftest import HEADER, csv_row


@pytest.mark.parametrize("raw, expected", [
    ("2018-01-05", date(2018, 1, 5)),
    ("2018/01/05", date(2018, 1, 5)),
    ("2018.01.05", date(2018, 1, 5)),
    ("20180105", date(2018, 1, 5)),
    (" 2018-01-05 ", date(2018, 1, 5)),
    ("2018-01-05 00:00:00", date(2018, 1, 5)),
])
def test_parse_event_date_accepts_separators(raw, expected):
    assert parse_event_date(raw) == expected


@pytest.mark.parametrize("raw", ["", "05 January 2018", "2018-1-5", "2018-01/05", "2018-02-30", "2018-13-01",
                                 "\u0662\u0660\u0661\u0668-\u0660\u0661-\u0660\u0665"])
def test_parse_event_date_rejects(raw):
    with pytest.raises(ValueError):
        parse_event_date(raw)


def test_parse_fatalities():
    assert parse_fatalities("") == 0
    assert parse_fatalities("12") == 12
    assert parse_fatalities("3.0") == 3
    for bad in ("-1", "1.5", "many", "nan", "inf"):
        with pytest.raises(ValueError):
            parse_fatalities(bad)


def test_load_keeps_empty_strings(sample_csv):
    df = load_table(sample_csv)
    assert len(df) == 6
    assert df.loc[3, "actor2"] == ""


def test_load_missing_file(tmp_path):
    with pytest.raises(SourceReadError) as exc:
        load_table(tmp_path / "nope.csv")
    assert exc.value.stage == "load"
    assert isinstance(exc.value.__cause__, OSError)


def test_load_semicolon_delimiter(tmp_path):
    path = tmp_path / "events.csv"
    path.write_text(";".join(HEADER) + "\n" + ";".join(csv_row("X1", "2019-05-01").values()) + "\n",
                    encoding="utf-8")
    df = load_table(path, delimiter=";")
    assert list(df.columns) == HEADER


def test_load_xlsx(tmp_path):
    path = tmp_path / "events.xlsx"
    pd.DataFrame([csv_row("X1", "2019-05-01", fatalities="4")]).to_excel(path, index=False)
    p = project_events(load_table(path))
    assert p.events[0].event_date == date(2019, 5, 1)
    assert p.events[0].fatalities == 4


def test_project_drops_and_reports_bad_rows(sample_csv):
    p = project_events(load_table(sample_csv))
    assert p.input_rows == 6
    assert len(p.events) == 5
    assert len(p.events) == p.input_rows - len(p.errors)
    (err,) = p.errors
    assert isinstance(err, DateParseError)
    assert err.row == 5
    assert err.event_id == "YEM5"
    assert err.value == "2018-02-30"
    assert all(isinstance(e.event_date, date) for e in p.events)


def test_project_collects_every_error(write_csv):
    path = write_csv([
        csv_row("A1", "bad"),
        csv_row("A2", "2018-01-01", fatalities="-3"),
        csv_row("A3", "2018-01-02"),
        csv_row("A4", "2018/1/3"),
    ])
    p = project_events(load_table(path))
    assert [type(e) for e in p.errors] == [DateParseError, FatalitiesParseError, DateParseError]
    assert [e.event_id for e in p.errors] == ["A1", "A2", "A4"]
    assert [e.event_id_cnty for e in p.events] == ["A3"]


def test_project_fail_policy_raises_all(write_csv):
    path = write_csv([csv_row("A1", "bad"), csv_row("A2", "2018-01-01"), csv_row("A3", "x")])
    with pytest.raises(RowErrors) as exc:
        project_events(load_table(path), date_policy="fail")
    assert [e.event_id for e in exc.value.errors] == ["A1", "A3"]
    assert exc.value.stage == "project"


def test_project_missing_columns(write_csv):
    header = [h for h in HEADER if h not in ("actor2", "fatalities")]
    path = write_csv([csv_row("A1", "2018-01-01")], header=header)
    with pytest.raises(SchemaError) as exc:
        project_events(load_table(path))
    assert sorted(exc.value.missing) == ["actor2", "fatalities"]


def test_project_values(write_csv):
    row = csv_row("YEM9", "2020-06-30", "Battles", "  Houthis ", "AQAP", "")
    row["latitude"] = ""
    p = project_events(load_table(write_csv([row])))
    e = p.events[0]
    assert e.actor1 == "Houthis"
    assert e.fatalities == 0
    assert e.latitude is None
    assert e.longitude == pytest.approx(44.021)
    assert e.year == 2020


def test_resolve_columns_loose_and_renamed():
    cols = ["EVENT_ID_CNTY", "Event Date", "year", "event_type", "sub_event_type", "actor1",
            "actor2", "admin1", "admin2", "location", "latitude", "longitude", "deaths"]
    resolved = resolve_columns(cols, {"fatalities": "deaths"})
    assert resolved["event_id_cnty"] == "EVENT_ID_CNTY"
    assert resolved["event_date"] == "Event Date"
    assert resolved["fatalities"] == "deaths"


def test_project_keeps_event_type_as_read(write_csv):
    path = write_csv([
        csv_row("A1", "2018-01-01", " Battles", fatalities="2"),
        csv_row("A2", "2018-01-02", "Battles", fatalities="3"),
    ])
    events = project_events(load_table(path)).events
    assert [e.event_type for e in events] == [" Battles", "Battles"]
    assert [(r.category, r.total_fatalities) for r in event_type_summary(events)] == [
        ("Battles", 3), (" Battles", 2),
    ]
    assert [e.weight for e in extract_graph(events, {"Battles"}).edges] == [1]


def test_project_duplicate_header_after_strip(write_csv):
    path = write_csv([csv_row("A1", "2018-01-01")], header=HEADER + ["actor1 "])
    with pytest.raises(SchemaError) as exc:
        project_events(load_table(path))
    assert exc.value.duplicates == ["actor1"]
    assert exc.value.missing == []


def test_resolve_columns_ambiguous_loose_match():
    cols = list(HEADER) + ["Event Date"]
    cols.remove("event_date")
    cols.append("EVENT-DATE")
    with pytest.raises(SchemaError) as exc:
        resolve_columns(cols)
    assert exc.value.duplicates == ["event_date"]
