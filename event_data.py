"""
event_data.py — dataset model & loader
--------------------------------------
The preprocessing step writes one JSON file shaped like:

    {"events": [
        {"id": "e1", "name": "Acquisition",
         "series": [{"name": "Top 1-10", "data": [[-5, 0.0], [0, 1.2], ...]}, ...]},
        ...
    ]}

Each data point is (day offset from the event, cumulative return in %).
The dataset is read once and never mutated, so everything here is frozen.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from errors import DatasetLoadError

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["series", "day", "cumulative_return"]


@dataclass(frozen=True)
class Series:
    """One rank group's cumulative-return path around an event."""
    name: str
    points: tuple[tuple[int, float], ...]


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    series: tuple[Series, ...]


@dataclass(frozen=True)
class Dataset:
    events: tuple[Event, ...]

    def find(self, event_id: str) -> Event | None:
        """Event whose id matches, or None."""
        for ev in self.events:
            if ev.id == event_id:
                return ev
        return None


# ── Parsing helpers ─────────────────────────────────────────────────────────
def _require(obj: dict, key: str, where: str):
    if not isinstance(obj, dict) or key not in obj:
        raise DatasetLoadError(f"{where}: missing '{key}'")
    return obj[key]


def _parse_point(raw, where: str) -> tuple[int, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise DatasetLoadError(f"{where}: expected [day, return], got {raw!r}")
    day, ret = raw
    # bool is an int subclass; a true/false here is a broken export
    if isinstance(day, bool) or isinstance(ret, bool):
        raise DatasetLoadError(f"{where}: non-numeric point {raw!r}")
    try:
        day_f, ret_f = float(day), float(ret)
    except (TypeError, ValueError, OverflowError) as e:
        raise DatasetLoadError(f"{where}: non-numeric point {raw!r}") from e
    # json accepts NaN and Infinity
    if not (math.isfinite(day_f) and math.isfinite(ret_f)):
        raise DatasetLoadError(f"{where}: non-finite point {raw!r}")
    if not day_f.is_integer():
        raise DatasetLoadError(f"{where}: day offset must be a whole number, got {day!r}")
    return int(day_f), ret_f


def _parse_series(raw: dict, where: str) -> Series:
    name = _require(raw, "name", where)
    data = _require(raw, "data", where)
    if not isinstance(data, list):
        raise DatasetLoadError(f"{where}: 'data' must be a list")
    points = tuple(_parse_point(p, f"{where}.data[{i}]") for i, p in enumerate(data))
    return Series(name=str(name), points=points)


def _parse_event(raw: dict, where: str) -> Event:
    ev_id = _require(raw, "id", where)
    name = _require(raw, "name", where)
    series = _require(raw, "series", where)
    if not isinstance(series, list):
        raise DatasetLoadError(f"{where}: 'series' must be a list")
    return Event(
        id=str(ev_id),
        name=str(name),
        series=tuple(_parse_series(s, f"{where}.series[{i}]") for i, s in enumerate(series)),
    )


def parse_dataset(payload) -> Dataset:
    """Build a Dataset from an already-decoded JSON payload."""
    events = _require(payload, "events", "dataset")
    if not isinstance(events, list):
        raise DatasetLoadError("dataset: 'events' must be a list")
    return Dataset(events=tuple(_parse_event(e, f"events[{i}]") for i, e in enumerate(events)))


def load_dataset(path: Path) -> Dataset:
    """
    Read and parse the dataset file.

    Raises:
        DatasetLoadError: file missing/unreadable, invalid JSON, or wrong shape.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DatasetLoadError(f"Could not read {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise DatasetLoadError(f"{path} is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DatasetLoadError(f"{path} is not valid JSON: {e}") from e

    ds = parse_dataset(payload)
    logger.info("Loaded %d events from %s", len(ds.events), path.name)
    return ds


# ── Views used by the UI ────────────────────────────────────────────────────
def selector_options(ds: Dataset) -> dict[str, str]:
    """Event id → display name, in dataset order."""
    return {ev.id: ev.name for ev in ds.events}


def dataset_frame(event: Event | None) -> pd.DataFrame:
    """
    Flatten one event into tidy rows: ['series', 'day', 'cumulative_return'].
    Series keep their stored order; an empty frame comes back for None.
    """
    if event is None:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    rows = [
        (s.name, day, ret)
        for s in event.series
        for day, ret in s.points
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["day"] = df["day"].astype("int64")
    df["cumulative_return"] = df["cumulative_return"].astype("float64")
    return df
