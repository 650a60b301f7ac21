"""Category normalization helpers (boroughs, colors, geometry)."""
