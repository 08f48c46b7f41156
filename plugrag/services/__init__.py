"""Service layer for the PlugRAG ingestion core."""
