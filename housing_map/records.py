"""Normalized point record shared by every dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

PERMITS = "permits"
VACATE = "vacate"


@dataclass(frozen=True)
class PointRecord:
    """One mappable row (permit or vacate order) after parsing."""

    lat: float
    lon: float
    dataset: str
    borough: Optional[str] = None
    permit_type: Optional[str] = None
    job_type: Optional[str] = None
    status: Optional[str] = None
    reason: Optional[str] = None
    address: str = ""
    date: str = ""
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        # Freeze the raw properties so records can be shared between layers.
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def latlon(self):
        return (self.lat, self.lon)
