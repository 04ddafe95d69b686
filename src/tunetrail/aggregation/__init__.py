"""Aggregation engine, storage, and summaries."""
