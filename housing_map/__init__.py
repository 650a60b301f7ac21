"""
Map builder for NYC housing-vacate orders and DOB construction permits.

This package holds the loaders, parsers, and layer builders that turn raw
point records into clustered, heat, and per-district map overlays.
"""

from .settings import map_settings  # noqa: F401
