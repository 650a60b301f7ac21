import json
import tempfile
from pathlib import Path
from unittest import TestCase
from unittest.mock import MagicMock

import requests

from housing_map.jobs.ingest_job import StreamingLoader
from housing_map.parsers.ndjson import LineFramer
from housing_map.parsers.vacate_parser import parse_vacate_row
from housing_map.settings import build_settings
from housing_map.sources.ndjson_chunks import HttpChunkSequence, LocalChunkSequence, open_chunk_sequence


def _line(lon: float, lat: float, permit_type: str = "NB") -> str:
    feature = {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": {"Permit Type": permit_type},
    }
    return json.dumps(feature) + "\n"


class LineFramerTests(TestCase):
    def test_carries_partial_line_to_next_chunk(self) -> None:
        framer = LineFramer()
        self.assertEqual(framer.feed(b'{"a":1'), [])
        self.assertEqual(framer.pending, '{"a":1')
        self.assertEqual(framer.feed(b',"b":2}\n{"c"'), ['{"a":1,"b":2}'])
        self.assertEqual(framer.flush(), ['{"c"'])
        self.assertEqual(framer.pending, "")

    def test_split_multibyte_character(self) -> None:
        encoded = '{"street":"Café"}\n'.encode("utf-8")
        split_at = encoded.index("é".encode("utf-8")) + 1
        framer = LineFramer()
        lines = framer.feed(encoded[:split_at]) + framer.feed(encoded[split_at:])
        self.assertEqual([json.loads(line)["street"] for line in lines], ["Café"])

    def test_crlf_and_blank_tail(self) -> None:
        framer = LineFramer()
        self.assertEqual(framer.feed(b"one\r\ntwo\r\n"), ["one", "two"])
        self.assertEqual(framer.flush(), [])


class StreamingLoaderTests(TestCase):
    def test_record_split_across_chunk_boundary_is_one_record(self) -> None:
        text = _line(-73.9, 40.7)
        cut = len(text) // 2
        loader = StreamingLoader()
        records = loader.load([[text[:cut].encode(), text[cut:].encode()]])

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].permit_type, "NB")
        self.assertEqual(loader.report.malformed_lines, 0)

    def test_every_split_point_yields_same_records(self) -> None:
        payload = (_line(-73.9, 40.7) + _line(-73.8, 40.6, "PL")).encode()
        for cut in range(len(payload) + 1):
            records = StreamingLoader().load([[payload[:cut], payload[cut:]]])
            self.assertEqual([r.permit_type for r in records], ["NB", "PL"], msg=f"cut={cut}")

    def test_malformed_line_is_skipped(self) -> None:
        chunk = (_line(-73.9, 40.7) + "{not json\n" + _line(-73.8, 40.6)).encode()
        loader = StreamingLoader()
        with self.assertLogs("housing_map.jobs.ingest_job", level="WARNING"):
            records = loader.load([[chunk]])
        self.assertEqual(len(records), 2)
        self.assertEqual(loader.report.malformed_lines, 1)

    def test_huge_integer_coordinate_is_rejected_not_fatal(self) -> None:
        huge = '{"geometry":{"coordinates":[1' + "0" * 400 + ',40.7]}}\n'
        loader = StreamingLoader()
        records = loader.load([[huge.encode() + _line(-73.9, 40.7).encode()]])

        self.assertEqual([r.lon for r in records], [-73.9])
        self.assertEqual(loader.report.rejected, 1)

    def test_deeply_nested_line_counts_as_malformed(self) -> None:
        nested = "[" * 200000 + "]" * 200000 + "\n"
        loader = StreamingLoader()
        with self.assertLogs("housing_map.jobs.ingest_job", level="WARNING"):
            records = loader.load([[nested.encode() + _line(-73.8, 40.6).encode()]])

        self.assertEqual(len(records), 1)
        self.assertEqual(loader.report.malformed_lines, 1)

    def test_rejected_records_are_counted(self) -> None:
        chunk = (_line(-73.9, 40.7) + json.dumps({"geometry": None}) + "\n").encode()
        loader = StreamingLoader()
        records = loader.load([[chunk]])
        self.assertEqual(len(records), 1)
        self.assertEqual(loader.report.rejected, 1)

    def test_final_line_without_newline_is_flushed_at_end_of_source(self) -> None:
        first = _line(-73.9, 40.7) + _line(-73.8, 40.6).rstrip("\n")
        second = _line(-73.7, 40.5, "PL")
        records = StreamingLoader().load([[first.encode()], [second.encode()]])
        self.assertEqual([r.lon for r in records], [-73.9, -73.8, -73.7])

    def test_stops_at_cap_mid_chunk(self) -> None:
        chunk = "".join(_line(-73.9 + i * 0.001, 40.7) for i in range(10)).encode()
        untouched = MagicMock()
        loader = StreamingLoader()
        records = loader.load(iter([[chunk], untouched]), cap=3)

        self.assertEqual(len(records), 3)
        self.assertTrue(loader.report.cap_reached)
        self.assertEqual(loader.report.sources_read, 1)
        untouched.__iter__.assert_not_called()

    def test_zero_cap_loads_nothing(self) -> None:
        self.assertEqual(StreamingLoader().load([[_line(-73.9, 40.7).encode()]], cap=0), [])

    def test_load_rows_applies_cap_and_rejects(self) -> None:
        rows = [
            {"latitude": "40.7", "longitude": "-73.9"},
            {"latitude": None, "longitude": "-73.9"},
            {"latitude": "40.6", "longitude": "-73.8"},
            {"latitude": "40.5", "longitude": "-73.7"},
        ]
        loader = StreamingLoader(parse=parse_vacate_row)
        records = loader.load_rows(rows, cap=2)
        self.assertEqual([r.lat for r in records], [40.7, 40.6])
        self.assertEqual(loader.report.rejected, 1)
        self.assertTrue(loader.report.cap_reached)


class LocalChunkSequenceTests(TestCase):
    def test_reads_numbered_files_until_gap(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp)
            (directory / "construction_0.ndjson").write_text(_line(-73.9, 40.7) + _line(-73.8, 40.6))
            (directory / "construction_1.ndjson").write_text(_line(-73.7, 40.5))
            (directory / "construction_3.ndjson").write_text(_line(-73.6, 40.4))

            sequence = LocalChunkSequence(directory, "construction_", block_size=7)
            records = StreamingLoader().load(sequence)

        self.assertEqual([r.lon for r in records], [-73.9, -73.8, -73.7])

    def test_open_chunk_sequence_picks_by_location(self) -> None:
        settings = build_settings()
        self.assertIsInstance(open_chunk_sequence("/tmp/ndjson", settings), LocalChunkSequence)
        self.assertIsInstance(
            open_chunk_sequence("https://example.org/ndjson", settings, session=MagicMock()),
            HttpChunkSequence,
        )


def _response(status: int, body: bytes = b"") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.url = "https://example.org/chunk"
    response.iter_content.side_effect = lambda chunk_size: iter(
        [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
    )
    return response


class HttpChunkSequenceTests(TestCase):
    def setUp(self) -> None:
        self.settings = build_settings()
        self.settings.chunk_bytes = 5

    def test_fetches_in_order_until_not_found(self) -> None:
        session = MagicMock()
        first = _response(200, (_line(-73.9, 40.7) + _line(-73.8, 40.6)).encode())
        second = _response(200, _line(-73.7, 40.5).encode())
        session.get.side_effect = [first, second, _response(404)]

        sequence = HttpChunkSequence("https://example.org/data/", "construction_", self.settings, session=session)
        records = StreamingLoader().load(sequence)

        self.assertEqual(len(records), 3)
        urls = [call.args[0] for call in session.get.call_args_list]
        self.assertEqual(
            urls,
            [
                "https://example.org/data/construction_0.ndjson",
                "https://example.org/data/construction_1.ndjson",
                "https://example.org/data/construction_2.ndjson",
            ],
        )
        first.close.assert_called()
        second.close.assert_called()

    def test_request_error_ends_sequence_with_records_so_far(self) -> None:
        session = MagicMock()
        session.get.side_effect = [
            _response(200, _line(-73.9, 40.7).encode()),
            requests.exceptions.ConnectionError("boom"),
        ]
        sequence = HttpChunkSequence("https://example.org", "construction_", self.settings, session=session)
        records = StreamingLoader().load(sequence)
        self.assertEqual(len(records), 1)

    def test_cap_closes_open_response(self) -> None:
        session = MagicMock()
        body = "".join(_line(-73.9, 40.7) for _ in range(5)).encode()
        response = _response(200, body)
        session.get.side_effect = [response]
        sequence = HttpChunkSequence("https://example.org", "construction_", self.settings, session=session)

        records = StreamingLoader().load(sequence, cap=2)

        self.assertEqual(len(records), 2)
        response.close.assert_called()
        self.assertEqual(session.get.call_count, 1)
