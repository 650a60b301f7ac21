"""Record and boundary sources (local chunk files, HTTP, NYC Open Data)."""
