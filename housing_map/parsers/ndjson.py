"""
Line framing for newline-delimited JSON delivered in arbitrary byte chunks.

A chunk boundary can split a line (or a multi-byte UTF-8 character) anywhere.
LineFramer keeps the unterminated tail between feeds and only hands it out
when the source is finished.
"""

from __future__ import annotations

import codecs
import json
from typing import Any, List, Union


class LineFramer:
    """Incrementally split decoded text into complete lines."""

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last newline, not yet emitted."""
        return self._buffer

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Add a chunk and return every line it completed (newline stripped)."""
        if isinstance(chunk, bytes):
            text = self._decoder.decode(chunk)
        else:
            text = chunk
        if not text:
            return []

        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        """End of source: return the buffered tail as a final line, if any."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        self._decoder.reset()
        tail = tail.rstrip("\r")
        return [tail] if tail.strip() else []


def decode_line(line: str) -> Any:
    """Decode one NDJSON line. Raises ValueError (JSONDecodeError) when malformed, RecursionError when nested too deeply."""
    return json.loads(line)
