"""Parsers that turn raw rows and NDJSON text into PointRecords."""
