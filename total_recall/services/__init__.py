"""Domain services: ingestion, retrieval and answer generation."""
