"""
Tests for the dataset loader.

Tests cover:
- Parsing a well-formed file
- Load failures (missing file, bad JSON, wrong shape)
- Selector options and the tidy frame
"""

import pytest

from errors import DatasetLoadError
from event_data import Dataset, dataset_frame, load_dataset, parse_dataset, selector_options


class TestLoadDataset:
    """Tests for load_dataset / parse_dataset."""

    def test_load_example(self, write_json, example_payload):
        """Test loading a well-formed file."""
        ds = load_dataset(write_json(example_payload))
        assert len(ds.events) == 1
        ev = ds.events[0]
        assert ev.id == "e1"
        assert ev.name == "Acquisition"
        assert ev.series[0].name == "Top 1-10"
        assert ev.series[0].points == ((-5, 0.0), (0, 1.2), (5, 3.4))

    def test_points_are_coerced(self):
        """Test that day offsets become ints and returns become floats."""
        ds = parse_dataset({"events": [
            {"id": 7, "name": "X", "series": [{"name": "11-20", "data": [[2.0, 1], ["3", "0.5"]]}]}
        ]})
        ev = ds.events[0]
        assert ev.id == "7"
        assert ev.series[0].points == ((2, 1.0), (3, 0.5))
        assert isinstance(ev.series[0].points[0][0], int)

    def test_missing_file_raises(self, tmp_path):
        """Test that a missing file is a load error."""
        with pytest.raises(DatasetLoadError, match="Could not read"):
            load_dataset(tmp_path / "nope.json")

    def test_invalid_json_raises(self, write_json):
        """Test that a truncated file is a load error."""
        with pytest.raises(DatasetLoadError, match="not valid JSON"):
            load_dataset(write_json('{"events": ['))

    def test_invalid_utf8_raises(self, tmp_path):
        """Test that a file that is not UTF-8 is a load error."""
        path = tmp_path / "event_study_data.json"
        path.write_bytes(b'{"events": [{"id": "\xff", "name": "A", "series": []}]}')
        with pytest.raises(DatasetLoadError, match="not valid UTF-8"):
            load_dataset(path)

    def test_json_infinity_literal_raises(self, write_json):
        """Test that the non-standard Infinity/NaN literals json accepts are rejected."""
        text = '{"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[Infinity, 1.0]]}]}]}'
        with pytest.raises(DatasetLoadError, match="non-finite"):
            load_dataset(write_json(text))

    @pytest.mark.parametrize("payload, match", [
        ([], "missing 'events'"),
        ({"events": {}}, "must be a list"),
        ({"events": [{"name": "A", "series": []}]}, "missing 'id'"),
        ({"events": [{"id": "a", "name": "A"}]}, "missing 'series'"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+"}]}]}, "missing 'data'"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[1]]}]}]}, "expected"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [["x", 1]]}]}]}, "non-numeric"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[1, True]]}]}]}, "non-numeric"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[float("inf"), 1.0]]}]}]}, "non-finite"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[1, float("nan")]]}]}]}, "non-finite"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[10 ** 400, 1.0]]}]}]}, "non-numeric"),
        ({"events": [{"id": "a", "name": "A", "series": [{"name": "51+", "data": [[2.5, 1.0]]}]}]}, "whole number"),
    ])
    def test_malformed_payload_raises(self, write_json, payload, match):
        """Test that structural problems are load errors."""
        with pytest.raises(DatasetLoadError, match=match):
            load_dataset(write_json(payload))

    def test_empty_event_list_is_valid(self):
        """Test that an empty dataset loads (the chart shows a placeholder)."""
        assert parse_dataset({"events": []}) == Dataset(events=())


class TestDatasetViews:
    """Tests for selector options, lookup and the tidy frame."""

    def test_selector_options_order(self, multi_dataset):
        """Test one option per event, in dataset order, keyed by id."""
        opts = selector_options(multi_dataset)
        assert list(opts.keys()) == ["acq", "split", "empty"]
        assert list(opts.values()) == ["Acquisition", "Stock Split", "No Series"]

    def test_find(self, multi_dataset):
        """Test lookup by id."""
        assert multi_dataset.find("split").name == "Stock Split"
        assert multi_dataset.find("missing") is None

    def test_dataset_frame(self, example_dataset):
        """Test flattening an event into tidy rows."""
        df = dataset_frame(example_dataset.events[0])
        assert list(df.columns) == ["series", "day", "cumulative_return"]
        assert len(df) == 3
        assert df["day"].tolist() == [-5, 0, 5]
        assert df["cumulative_return"].max() == pytest.approx(3.4)

    def test_dataset_frame_keeps_series_order(self, multi_dataset):
        """Test rows follow the stored series order."""
        df = dataset_frame(multi_dataset.find("split"))
        assert df["series"].drop_duplicates().tolist() == ["11-20", "Top 1-10"]

    def test_dataset_frame_none(self):
        """Test that no event gives an empty frame with the usual columns."""
        df = dataset_frame(None)
        assert df.empty
        assert list(df.columns) == ["series", "day", "cumulative_return"]
