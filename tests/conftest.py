import json

import pytest

from event_data import parse_dataset


EXAMPLE_PAYLOAD = {
    "events": [
        {
            "id": "e1",
            "name": "Acquisition",
            "series": [{"name": "Top 1-10", "data": [[-5, 0.0], [0, 1.2], [5, 3.4]]}],
        }
    ]
}

MULTI_PAYLOAD = {
    "events": [
        {
            "id": "acq",
            "name": "Acquisition",
            "series": [
                {"name": "Top 1-10", "data": [[-2, 0.0], [0, 1.5], [2, 2.0]]},
                {"name": "51+", "data": [[-2, 0.0], [0, -0.8], [2, -1.1]]},
            ],
        },
        {
            "id": "split",
            "name": "Stock Split",
            "series": [
                {"name": "11-20", "data": [[-3, 0.0], [0, 0.4], [3, 7.7]]},
                {"name": "Top 1-10", "data": [[-3, 0.0], [0, 0.2], [3, 0.9]]},
            ],
        },
        {"id": "empty", "name": "No Series", "series": []},
    ]
}


@pytest.fixture
def example_dataset():
    return parse_dataset(EXAMPLE_PAYLOAD)


@pytest.fixture
def multi_dataset():
    return parse_dataset(MULTI_PAYLOAD)


@pytest.fixture
def write_json(tmp_path):
    """Write a payload (dict or raw text) to a temp file and return its path."""
    def _write(payload, name="event_study_data.json"):
        path = tmp_path / name
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def example_payload():
    return EXAMPLE_PAYLOAD
