"""Command-line tools for the PlugRAG ingestion core.

- ``python -m plugrag.cli detect PATH`` -- print a file's detected type
- ``python -m plugrag.cli file PATH`` -- extract and chunk a local file
- ``python -m plugrag.cli url URL...`` -- fetch, extract and chunk URLs
- ``python -m plugrag.cli config`` -- print the resolved configuration

The same commands are installed as the ``plugrag`` console script.
"""
