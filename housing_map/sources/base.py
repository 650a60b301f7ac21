"""Shared HTTP session handling for record and boundary sources."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

import requests

from ..settings import MapSettings

logger = logging.getLogger(__name__)


class BaseHttpSource:
    """Owns a requests session with the configured user agent and timeout."""

    def __init__(self, settings: MapSettings, name: str = "source", session: Optional[requests.Session] = None):
        self.settings = settings
        self.logger = logging.getLogger(f"source.{name}")
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": settings.user_agent})

    def _get(self, url: str, **kwargs) -> Optional[requests.Response]:
        """GET `url`; returns None (and logs) on any transport error."""
        kwargs.setdefault("timeout", self.settings.request_timeout)
        try:
            return self.session.get(url, **kwargs)
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"Request failed for {url}: {e}")
            return None


def stream_body(response: requests.Response, chunk_bytes: int) -> Iterator[bytes]:
    """Yield a streamed response body in pieces, closing the response when done or abandoned."""
    try:
        for piece in response.iter_content(chunk_size=chunk_bytes):
            if piece:
                yield piece
    except requests.exceptions.RequestException as e:
        logger.warning(f"Stream interrupted for {response.url}: {e}")
    finally:
        response.close()
