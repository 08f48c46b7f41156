"""PlugRAG ingestion core: validation, extraction and chunking for RAG."""

__version__ = "0.1.0"
