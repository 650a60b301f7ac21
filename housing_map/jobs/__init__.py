"""Job orchestrators: ingestion and map building."""
