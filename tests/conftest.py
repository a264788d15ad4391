from datetime import date
import csv

import pytest

from conflictnet.models import Event

HEADER = [
    "event_id_cnty", "event_date", "year", "event_type", "sub_event_type",
    "actor1", "actor2", "admin1", "admin2", "location", "latitude", "longitude",
    "fatalities", "notes",
]


def make_event(actor1="A", actor2="B", event_type="Battles", fatalities=0,
               event_date=date(2018, 1, 5), event_id="YEM1", **kw) -> Event:
    fields = dict(
        event_id_cnty=event_id,
        event_date=event_date,
        year=event_date.year,
        event_type=event_type,
        sub_event_type=kw.pop("sub_event_type", "Armed clash"),
        actor1=actor1,
        actor2=actor2,
        admin1="Taizz",
        admin2="Al Qahirah",
        location="Taizz",
        latitude=13.579,
        longitude=44.021,
        fatalities=fatalities,
    )
    fields.update(kw)
    return Event(**fields)


def csv_row(event_id, event_date, event_type="Battles", actor1="A", actor2="B", fatalities="0"):
    return {
        "event_id_cnty": event_id,
        "event_date": event_date,
        "year": event_date[:4],
        "event_type": event_type,
        "sub_event_type": "Armed clash",
        "actor1": actor1,
        "actor2": actor2,
        "admin1": "Taizz",
        "admin2": "Al Qahirah",
        "location": "Taizz",
        "latitude": "13.579",
        "longitude": "44.021",
        "fatalities": fatalities,
        "notes": "",
    }


@pytest.fixture
def write_csv(tmp_path):
    """Write rows (dicts) under HEADER and return the file path."""
    def _write(rows, name="events.csv", header=HEADER):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
            w.writeheader()
            for r in rows:
                w.writerow(r)
        return path
    return _write


@pytest.fixture
def sample_csv(write_csv):
    return write_csv([
        csv_row("YEM1", "2018-01-05", "Battles", "Houthis", "Military Forces of Yemen", "10"),
        csv_row("YEM2", "2018-01-20", "Battles", "Houthis", "Military Forces of Yemen", "5"),
        csv_row("YEM3", "2018-02-01", "Explosions/Remote violence", "Saudi-led Coalition", "Houthis", "2"),
        csv_row("YEM4", "2018-02-14", "Protests", "Protesters (Yemen)", "", "0"),
        csv_row("YEM5", "2018-02-30", "Battles", "Houthis", "AQAP", "7"),
        csv_row("YEM6", "2018-03-03", "Battles", "AQAP", "", "1"),
    ])
