"""tunetrail: listening-history ingestion and aggregation service."""
