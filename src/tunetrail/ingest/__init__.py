"""Ingestion pipeline: upload jobs, batch writes, and live sync."""
