# =============================================================================
# plugrag/cli/ingest.py: Ingestion CLI
# =============================================================================
#
# Runs the ingestion core from a shell: detect a file's format, or extract
# and chunk a local file or one or more URLs, printing a summary or the full
# result as JSON.  Nothing is embedded or stored.
#
# Supported subcommands:
#
#   detect : Print the detected file type of a local file
#   file   : Validate, extract and chunk a local file
#   url    : Fetch, extract and chunk one or more URLs concurrently
#   config : Print the resolved configuration (YAML merged with env)
#
# Usage examples:
#   python -m plugrag.cli detect report.pdf
#   python -m plugrag.cli file notes.md --max-chunk-size 500 --overlap 50
#   python -m plugrag.cli url https://example.com/a https://example.com/b \
#       --extract-links --concurrency 2 --json
# =============================================================================

"""Command-line interface for the PlugRAG ingestion core.

Usage::

    plugrag detect report.pdf
    plugrag file notes.md --max-chunk-size 500 --json
    plugrag url https://example.com/article --extract-links
    plugrag config

Token counts use the configured embedding model's tiktoken encoding unless
``--approximate-tokens`` is passed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from plugrag.config.settings import Settings
from plugrag.interfaces.tokenizer import ITokenCounter
from plugrag.models.options import ProcessingOptions
from plugrag.models.results import ProcessingResult
from plugrag.utils.errors import PlugRAGError
from plugrag.utils.logging import configure_logging


def _build_token_counter(app_settings: Settings, approximate: bool) -> ITokenCounter:
    """Select the token counter.

    The heuristic counter is only used when explicitly requested; its counts
    do not match what the embedding API reports.
    """
    if approximate:
        from plugrag.providers.tokenizer.heuristic_counter import HeuristicTokenCounter

        return HeuristicTokenCounter()

    from plugrag.providers.tokenizer.tiktoken_counter import TiktokenTokenCounter

    return TiktokenTokenCounter(app_settings.embedding_model)


def _build_options(args: argparse.Namespace, app_settings: Settings) -> ProcessingOptions:
    """Merge command-line overrides onto the settings' default options."""
    overrides: dict[str, object] = {}
    if args.max_chunk_size is not None:
        overrides["max_chunk_size"] = args.max_chunk_size
    if args.overlap is not None:
        overrides["overlap"] = args.overlap
    if args.no_structure:
        overrides["respect_structure"] = False
    for name in ("extract_links", "truncate_oversized"):
        if getattr(args, name, False):
            overrides[name] = True
    for name in ("timeout", "max_content_length"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return app_settings.default_processing_options(**overrides)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _result_payload(result: ProcessingResult) -> dict:
    """Build the JSON payload for one processed source."""
    document = result.document
    return {
        "metadata": document.metadata.model_dump(mode="json"),
        "structure_markers": len(document.structure),
        "links": [link.model_dump(mode="json") for link in document.links],
        "warnings": result.warnings,
        "total_tokens": result.total_tokens,
        "average_chunk_tokens": result.average_chunk_tokens,
        "chunks": [chunk.model_dump(mode="json") for chunk in result.chunks],
    }


def _print_summary(label: str, result: ProcessingResult) -> None:
    metadata = result.document.metadata
    print(f"{label}")
    print(f"  Type:           {metadata.file_type.value}")
    if metadata.title:
        print(f"  Title:          {metadata.title}")
    print(f"  Words:          {metadata.word_count}")
    if metadata.page_count is not None:
        print(f"  Pages:          {metadata.page_count}")
    print(f"  Confidence:     {metadata.confidence:.2f} ({metadata.confidence_level})")
    print(f"  Chunks:         {len(result.chunks)}")
    print(f"  Total tokens:   {result.total_tokens}")
    print(f"  Avg tokens:     {result.average_chunk_tokens}")
    if result.document.links:
        print(f"  Links:          {len(result.document.links)}")
    for warning in result.warnings:
        print(f"  Warning:        {warning}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _handle_detect(args: argparse.Namespace) -> int:
    """Print the detected file type."""
    from plugrag.services.ingestion.format_detector import detect_file_type

    path = Path(args.path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
        return 1

    print(detect_file_type(data, path.name, args.mime_type).value)
    return 0


def _handle_file(args: argparse.Namespace, app_settings: Settings) -> int:
    """Validate, extract and chunk a local file."""
    from plugrag.services.ingestion.pipeline import IngestionPipeline

    path = Path(args.path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
        return 1

    try:
        options = _build_options(args, app_settings)
        pipeline = IngestionPipeline(
            _build_token_counter(app_settings, args.approximate_tokens),
            settings=app_settings,
        )
        result = pipeline.process_file(data, path.name, args.mime_type, options)
    except (PlugRAGError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(_result_payload(result), indent=2, ensure_ascii=False))
    else:
        _print_summary(str(path), result)
    return 0


def _handle_config(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print the YAML config merged with environment settings."""
    import yaml

    from plugrag.config.loader import load_config

    config = load_config(args.path, settings=app_settings)
    print(yaml.safe_dump(config, sort_keys=False), end="")
    return 0


async def _handle_url(args: argparse.Namespace, app_settings: Settings) -> int:
    """Fetch, extract and chunk every URL, at most ``--concurrency`` at a time."""
    from plugrag.providers.fetch.httpx_fetcher import HttpxContentFetcher
    from plugrag.services.ingestion.pipeline import IngestionPipeline
    from plugrag.utils.concurrency import throttled_gather

    try:
        options = _build_options(args, app_settings)
        token_counter = _build_token_counter(app_settings, args.approximate_tokens)
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    async with HttpxContentFetcher(user_agent=app_settings.fetch_user_agent) as fetcher:
        pipeline = IngestionPipeline(token_counter, fetcher=fetcher, settings=app_settings)
        results = await throttled_gather(
            [pipeline.process_url(url, options) for url in args.urls],
            limit=args.concurrency,
        )

    exit_code = 0
    payload: dict[str, object] = {}
    for url, result in zip(args.urls, results):
        if isinstance(result, PlugRAGError):
            print(f"Error: {url}: {result}", file=sys.stderr)
            payload[url] = {"error": str(result), "error_type": type(result).__name__}
            exit_code = 1
        elif isinstance(result, BaseException):
            raise result
        elif args.json:
            payload[url] = _result_payload(result)
        else:
            _print_summary(url, result)
            print()

    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return exit_code


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_chunking_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--max-chunk-size", type=int, default=None, help="Token budget per chunk")
    parser.add_argument("--overlap", type=int, default=None, help="Overlap between chunks in tokens")
    parser.add_argument(
        "--no-structure",
        action="store_true",
        help="Ignore document structure when choosing split points",
    )
    parser.add_argument(
        "--approximate-tokens",
        action="store_true",
        help="Count tokens as ceil(chars / 4) instead of using tiktoken",
    )
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="plugrag",
        description="Extract and chunk documents for retrieval-augmented generation.",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: from settings)")
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- detect --
    detect_parser = subparsers.add_parser("detect", help="Detect the file type of a local file")
    detect_parser.add_argument("path", help="Path to the file")
    detect_parser.add_argument("--mime-type", default=None, help="Declared MIME type")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Extract and chunk a local file")
    file_parser.add_argument("path", help="Path to the file")
    file_parser.add_argument("--mime-type", default=None, help="Declared MIME type")
    _add_chunking_arguments(file_parser)

    # -- url --
    url_parser = subparsers.add_parser("url", help="Fetch, extract and chunk URLs")
    url_parser.add_argument("urls", nargs="+", help="One or more http(s) URLs")
    url_parser.add_argument("--extract-links", action="store_true", help="Collect outbound links")
    url_parser.add_argument("--timeout", type=float, default=None, help="Fetch timeout in seconds")
    url_parser.add_argument(
        "--max-content-length", type=int, default=None, help="Maximum response size in bytes"
    )
    url_parser.add_argument(
        "--truncate-oversized",
        action="store_true",
        help="Truncate oversized responses instead of failing",
    )
    url_parser.add_argument(
        "--concurrency", type=int, default=4, help="Maximum simultaneous fetches (default: 4)"
    )
    _add_chunking_arguments(url_parser)

    # -- config --
    config_parser = subparsers.add_parser("config", help="Print the resolved configuration")
    config_parser.add_argument(
        "--path", default="config/config.yaml", help="YAML config file (default: config/config.yaml)"
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, configure logging and dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(args.log_level or app_settings.log_level)

    if args.command == "detect":
        exit_code = _handle_detect(args)
    elif args.command == "file":
        exit_code = _handle_file(args, app_settings)
    elif args.command == "url":
        if args.concurrency < 1:
            parser.error("--concurrency must be at least 1")
        exit_code = asyncio.run(_handle_url(args, app_settings))
    elif args.command == "config":
        exit_code = _handle_config(args, app_settings)
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
