"""
NYC Open Data adapter for HPD order-to-repair/vacate rows.

The Socrata endpoint returns one JSON array; rows are handed to the ingest
job undecoded so the same cap/reject accounting applies as for NDJSON.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ..settings import MapSettings
from .base import BaseHttpSource


class VacateOrdersSource(BaseHttpSource):
    def __init__(self, settings: MapSettings, url: Optional[str] = None, session: Optional[requests.Session] = None):
        super().__init__(settings, name="vacate", session=session)
        self.url = url or settings.vacate_api_url

    def fetch_rows(self) -> List[Dict[str, Any]]:
        """
        Download all vacate rows.

        Returns:
            List of row dicts; empty when the request fails or the payload is
            not a JSON array.
        """
        response = self._get(self.url)
        if response is None:
            return []
        try:
            response.raise_for_status()
            rows = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            self.logger.error(f"Vacate API error: {e}")
            return []

        if not isinstance(rows, list):
            self.logger.error(f"Unexpected vacate payload type: {type(rows).__name__}")
            return []

        self.logger.info(f"Records loaded: {len(rows)}")
        return rows
