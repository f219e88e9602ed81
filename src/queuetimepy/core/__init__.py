"""Core domain: models, ports and the ingestion and aggregation paths."""
