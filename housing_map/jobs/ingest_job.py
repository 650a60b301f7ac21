"""
Streaming ingestion of point records.

Consumes chunk sources in order, frames NDJSON lines across chunk
boundaries, parses each line on its own and stops at the record cap.
Malformed lines and unplaceable records are counted and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from ..parsers.ndjson import LineFramer, decode_line
from ..parsers.permit_parser import parse_permit_feature
from ..records import PointRecord

logger = logging.getLogger(__name__)

Parser = Callable[[Any], Optional[PointRecord]]


@dataclass
class LoadReport:
    sources_read: int = 0
    lines_seen: int = 0
    malformed_lines: int = 0
    rejected: int = 0
    accepted: int = 0
    cap_reached: bool = False


class _CapReached(Exception):
    pass


class StreamingLoader:
    def __init__(self, parse: Parser = parse_permit_feature):
        self.parse = parse
        self.report = LoadReport()

    def _accept(self, records: List[PointRecord], row: Any, cap: Optional[int]) -> None:
        record = self.parse(row)
        if record is None:
            self.report.rejected += 1
            return
        records.append(record)
        self.report.accepted += 1
        if cap is not None and len(records) >= cap:
            self.report.cap_reached = True
            raise _CapReached()

    def _consume_line(self, records: List[PointRecord], line: str, cap: Optional[int]) -> None:
        if not line.strip():
            return
        self.report.lines_seen += 1
        try:
            row = decode_line(line)
        except (ValueError, RecursionError) as e:
            self.report.malformed_lines += 1
            logger.warning(f"Skipping malformed NDJSON line in source {self.report.sources_read}: {e}")
            return
        self._accept(records, row, cap)

    def load(self, sources: Iterable[Iterable[bytes]], cap: Optional[int] = None) -> List[PointRecord]:
        """
        Read every source in order until exhausted or `cap` records are accepted.

        Args:
            sources: Iterable of sources; each source is an iterable of byte
                (or str) chunks. A line may be split across chunks.
            cap: Maximum number of accepted records (None for no limit)

        Returns:
            Accepted records in source order. `self.report` holds the counts.
        """
        self.report = LoadReport()
        records: List[PointRecord] = []
        if cap is not None and cap <= 0:
            self.report.cap_reached = True
            return records

        try:
            for source in sources:
                self.report.sources_read += 1
                framer = LineFramer()
                try:
                    for chunk in source:
                        for line in framer.feed(chunk):
                            self._consume_line(records, line, cap)
                    for line in framer.flush():
                        self._consume_line(records, line, cap)
                finally:
                    close = getattr(source, "close", None)
                    if close is not None:
                        close()
        except _CapReached:
            logger.info(f"Record cap of {cap} reached after {self.report.sources_read} source(s)")

        report = self.report
        logger.info(
            f"Loaded {report.accepted} record(s) from {report.sources_read} source(s) "
            f"({report.malformed_lines} malformed line(s), {report.rejected} rejected)"
        )
        return records

    def load_rows(self, rows: Iterable[Any], cap: Optional[int] = None) -> List[PointRecord]:
        """Apply the same parse / reject / cap accounting to already-decoded rows."""
        self.report = LoadReport(sources_read=1)
        records: List[PointRecord] = []
        if cap is not None and cap <= 0:
            self.report.cap_reached = True
            return records
        try:
            for row in rows:
                self.report.lines_seen += 1
                self._accept(records, row, cap)
        except _CapReached:
            logger.info(f"Record cap of {cap} reached")
        return records
