import json
import tempfile
from pathlib import Path
from unittest import TestCase

from housing_map.parsers.sanitize import clean_text, sanitize_feature
from housing_map.storage.files import clean_geojson_file, cleaned_path_for, write_ndjson_chunks


def _collection(count):
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-73.9, 40.7]}, "properties": {"n": i}}
            for i in range(count)
        ],
    }


class CleanTextTests(TestCase):
    def test_replaces_non_finite_tokens_and_trailing_commas(self) -> None:
        raw = '{"a": NaN, "b": [1, -Infinity, Infinity, NAN,], "c": {"d": 1,},}'
        self.assertEqual(json.loads(clean_text(raw)), {"a": None, "b": [1, None, None, None], "c": {"d": 1}})

    def test_leaves_valid_json_alone(self) -> None:
        raw = '{"a": [1, 2], "b": "Nantucket"}'
        self.assertEqual(clean_text(raw), raw)

    def test_sanitize_feature_nulls_non_finite_floats(self) -> None:
        line = sanitize_feature({"geometry": {"coordinates": [float("nan"), 40.7]}, "properties": {"x": float("inf")}})
        self.assertNotIn("\n", line)
        self.assertEqual(json.loads(line), {"geometry": {"coordinates": [None, 40.7]}, "properties": {"x": None}})


class CleanGeojsonFileTests(TestCase):
    def test_writes_cleaned_copy(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "districts.geojson"
            source.write_text('{"type": "FeatureCollection", "features": [{"v": NaN},],}')
            out = clean_geojson_file(source)

            self.assertEqual(out, Path(tmp) / "districts.cleaned.geojson")
            self.assertEqual(json.loads(out.read_text())["features"], [{"v": None}])

    def test_missing_input_is_skipped(self) -> None:
        with self.assertLogs("housing_map.storage.files", level="WARNING"):
            self.assertIsNone(clean_geojson_file("/nonexistent/file.geojson"))

    def test_cleaned_path_for_other_suffix(self) -> None:
        self.assertEqual(cleaned_path_for(Path("data/export.json")).name, "export.json.cleaned.geojson")


class WriteNdjsonChunksTests(TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.root = Path(self.tmp.name)

    def _write(self, document) -> Path:
        path = self.root / "input.geojson"
        path.write_text(json.dumps(document))
        return path

    def test_splits_into_numbered_chunks(self) -> None:
        written = write_ndjson_chunks(self._write(_collection(5)), self.root / "out", chunk_size=2)

        self.assertEqual([p.name for p in written], ["construction_0.ndjson", "construction_1.ndjson", "construction_2.ndjson"])
        lines = [line for p in written for line in p.read_text().splitlines()]
        self.assertEqual([json.loads(line)["properties"]["n"] for line in lines], [0, 1, 2, 3, 4])

    def test_exact_multiple_has_no_empty_trailing_file(self) -> None:
        written = write_ndjson_chunks(self._write(_collection(4)), self.root / "out", chunk_size=2, prefix="p_")
        self.assertEqual([p.name for p in written], ["p_0.ndjson", "p_1.ndjson"])

    def test_nan_in_input_becomes_null(self) -> None:
        path = self.root / "input.geojson"
        path.write_text('{"type": "FeatureCollection", "features": [{"type": "Feature", "properties": {"v": NaN}}]}')
        written = write_ndjson_chunks(path, self.root / "out")
        self.assertEqual(json.loads(written[0].read_text())["properties"]["v"], None)

    def test_empty_collection_writes_nothing(self) -> None:
        self.assertEqual(write_ndjson_chunks(self._write(_collection(0)), self.root / "out"), [])

    def test_rejects_non_feature_collection(self) -> None:
        with self.assertRaises(ValueError):
            write_ndjson_chunks(self._write({"type": "Feature"}), self.root / "out")

    def test_rejects_unparseable_input(self) -> None:
        path = self.root / "broken.geojson"
        path.write_text('{"type": "FeatureCollection", "features": [],}')
        with self.assertRaises(ValueError):
            write_ndjson_chunks(path, self.root / "out")

    def test_missing_input(self) -> None:
        with self.assertRaises(FileNotFoundError):
            write_ndjson_chunks(self.root / "nope.geojson", self.root / "out")
