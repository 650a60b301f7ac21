"""
Numbered NDJSON chunk files, read in order from a directory or a base URL.

Files are named `{prefix}{index}{suffix}` starting at index 0 (the layout
written by `storage.files.write_ndjson_chunks`). The first missing file ends
the sequence. Each yielded source is itself an iterator of raw byte pieces,
so a record may be split across pieces; framing is the loader's job.
"""

from __future__ import annotations

import logging
from itertools import count
from pathlib import Path
from typing import Iterator, Optional, Union

import requests

from ..settings import MapSettings
from .base import BaseHttpSource, stream_body


def _read_blocks(path: Path, block_size: int) -> Iterator[bytes]:
    with path.open("rb") as handle:
        while True:
            block = handle.read(block_size)
            if not block:
                break
            yield block


class LocalChunkSequence:
    """Chunk files on local disk."""

    def __init__(self, directory: Union[str, Path], prefix: str, suffix: str = ".ndjson", block_size: int = 65536):
        self.directory = Path(directory)
        self.prefix = prefix
        self.suffix = suffix
        self.block_size = block_size
        self.logger = logging.getLogger(f"chunks.{prefix.rstrip('_') or 'local'}")

    def path_for(self, index: int) -> Path:
        return self.directory / f"{self.prefix}{index}{self.suffix}"

    def __iter__(self) -> Iterator[Iterator[bytes]]:
        for index in count():
            path = self.path_for(index)
            if not path.is_file():
                self.logger.info(f"No chunk file at {path}; {index} chunk(s) available")
                return
            self.logger.debug(f"Reading {path}")
            yield _read_blocks(path, self.block_size)


class HttpChunkSequence(BaseHttpSource):
    """Chunk files served over HTTP, fetched one after another."""

    def __init__(
        self,
        base_url: str,
        prefix: str,
        settings: MapSettings,
        suffix: str = ".ndjson",
        session: Optional[requests.Session] = None,
    ):
        super().__init__(settings, name=f"chunks.{prefix.rstrip('_') or 'http'}", session=session)
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix
        self.suffix = suffix

    def url_for(self, index: int) -> str:
        return f"{self.base_url}/{self.prefix}{index}{self.suffix}"

    def __iter__(self) -> Iterator[Iterator[bytes]]:
        for index in count():
            url = self.url_for(index)
            response = self._get(url, stream=True)
            if response is None:
                return
            if response.status_code != 200:
                self.logger.info(f"Chunk {index} returned HTTP {response.status_code}; end of sequence")
                response.close()
                return
            self.logger.debug(f"Streaming {url}")
            yield stream_body(response, self.settings.chunk_bytes)


def open_chunk_sequence(
    location: str,
    settings: MapSettings,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
    session: Optional[requests.Session] = None,
):
    """Pick the HTTP or local sequence based on whether `location` is a URL."""
    prefix = settings.ndjson_prefix if prefix is None else prefix
    suffix = settings.ndjson_suffix if suffix is None else suffix
    if str(location).startswith(("http://", "https://")):
        return HttpChunkSequence(location, prefix, settings, suffix=suffix, session=session)
    return LocalChunkSequence(location, prefix, suffix=suffix, block_size=settings.chunk_bytes)
