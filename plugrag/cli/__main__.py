"""Allow ``python -m plugrag.cli`` execution."""

from plugrag.cli.ingest import main

main()
