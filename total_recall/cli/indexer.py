# =============================================================================
# total_recall/cli/indexer.py -- Indexer CLI
# =============================================================================
#
# Builds and inspects the vector index of a user's source code.
#
#   index <directory>  -- ensure the index exists, then embed and upload
#                         every matching source file under <directory>
#   create-index       -- only ensure the index exists
#   info               -- print configuration (secrets masked) and index
#                         metadata as JSON
#   search <query>     -- print the files most similar to <query>
#   tokens <file>      -- print token count and a token sample for a file
#
# Exit codes: 0 on success (per-file errors are itemised but do not fail
# the run), 1 on configuration errors, index failures or no command, 2 on
# unrecognised arguments (argparse).
# =============================================================================

"""Command-line indexer for Total Recall.

Usage::

    python -m total_recall.cli index ~/projects
    python -m total_recall.cli info
    python -m total_recall.cli search "debounce hook"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Sequence

from total_recall.config.loader import load_settings
from total_recall.config.settings import Settings
from total_recall.models.rag import IngestionReport
from total_recall.utils.errors import ConfigurationError, IngestionError, RAGError
from total_recall.utils.logging import configure_logging

# Commands that call the embedding / completion APIs.
_NEEDS_CREDENTIALS = {"index", "search"}

_PREVIEW_CHARS = 300


# ---------------------------------------------------------------------------
# Component construction (imports deferred to keep --help fast)
# ---------------------------------------------------------------------------


def _build_vector_store(app_settings: Settings):  # noqa: ANN202
    from total_recall.providers.vector_store.chromadb_provider import ChromaDBProvider

    return ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        index_name=app_settings.search_index_name,
    )


def _build_embedding_provider(app_settings: Settings):  # noqa: ANN202
    from total_recall.providers.embedding.openai_embedding_provider import (
        OpenAIEmbeddingProvider,
    )

    return OpenAIEmbeddingProvider(settings=app_settings)


def _build_ingestion_service(app_settings: Settings):  # noqa: ANN202
    from total_recall.services.ingestion.chunker import TextChunker
    from total_recall.services.ingestion.ingestion_service import IngestionService
    from total_recall.services.ingestion.token_counter import TokenCounter

    chunker = TextChunker(
        token_counter=TokenCounter(default_model=app_settings.embedding_deployment),
        max_tokens=app_settings.chunk_max_tokens,
        model=app_settings.embedding_deployment,
    )
    return IngestionService(
        chunker=chunker,
        embedding_provider=_build_embedding_provider(app_settings),
        vector_store=_build_vector_store(app_settings),
        index_name=app_settings.search_index_name,
        vector_size=app_settings.vector_size,
        batch_size=app_settings.ingest_batch_size,
        max_concurrent_tasks=app_settings.max_concurrent_tasks,
        file_timeout=app_settings.file_timeout_seconds,
        request_token_limit=app_settings.embed_request_token_limit,
    )


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_index(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ensure the index, enumerate files and ingest them."""
    from total_recall.providers.files.local_file_provider import LocalFileProvider

    if args.batch_size:
        app_settings = app_settings.model_copy(update={"ingest_batch_size": args.batch_size})
    if args.concurrency:
        app_settings = app_settings.model_copy(update={"max_concurrent_tasks": args.concurrency})

    service = _build_ingestion_service(app_settings)
    file_provider = LocalFileProvider(
        extensions=app_settings.source_extensions,
        excluded=[*app_settings.excluded_paths, *args.exclude],
    )

    result = await service.ensure_index()
    if not result.ok:
        print(f"Error: could not create or confirm index '{result.name}': {result.reason}")
        return 1
    print(f"Index '{result.name}': {result.status.value.replace('_', ' ')}")

    try:
        files = file_provider.list_files(args.directory)
    except IngestionError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Found {len(files)} files to index in {args.directory}")
    if not files:
        return 0

    report = await service.ingest(files)
    _print_summary(report, len(files))
    return 0


async def _handle_create_index(app_settings: Settings) -> int:
    """Ensure the index exists and print the outcome."""
    vector_store = _build_vector_store(app_settings)
    result = await vector_store.ensure_index(
        app_settings.search_index_name, app_settings.vector_size
    )
    if not result.ok:
        print(f"Error: could not create index '{result.name}': {result.reason}")
        return 1
    print(f"Index '{result.name}': {result.status.value.replace('_', ' ')}")
    return 0


async def _handle_info(app_settings: Settings) -> int:
    """Print configuration with secrets masked, then index metadata."""
    print("Configuration")
    print("=" * 40)
    for key, value in app_settings.describe().items():
        print(f"  {key:<26} {value}")

    missing = app_settings.missing_required()
    if missing:
        print("\n  Missing required values: " + ", ".join(missing))

    info = await _build_vector_store(app_settings).get_index_info()
    print("\nIndex")
    print("=" * 40)
    print(
        json.dumps(
            {
                "persistDirectory": info.location,
                "indexName": info.name,
                "exists": info.exists,
                "vectorSize": app_settings.vector_size,
                "dimension": info.dimension,
                "documentCount": info.document_count,
                "embeddingModel": app_settings.embedding_deployment,
                "completionModel": app_settings.completion_deployment,
            },
            indent=2,
        )
    )
    return 0


async def _handle_search(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print the indexed files closest to the query."""
    from total_recall.services.retrieval_service import RetrievalService

    retrieval = RetrievalService(
        embedding_provider=_build_embedding_provider(app_settings),
        vector_store=_build_vector_store(app_settings),
        default_top_k=app_settings.retrieval_top_k,
    )
    try:
        contexts = await retrieval.retrieve_context(args.query, args.top_k)
    except RAGError as exc:
        print(f"Error: {exc}")
        return 1

    if not contexts:
        print("No matching implementations found.")
        return 0

    for i, context in enumerate(contexts, start=1):
        preview = context.content[:_PREVIEW_CHARS]
        if len(context.content) > _PREVIEW_CHARS:
            preview += "..."
        print(f"[{i}] {context.path}")
        print(preview)
        print("-" * 40)
    return 0


def _handle_tokens(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print token count, chunk count and a token sample for one file."""
    from total_recall.services.ingestion.chunker import TextChunker
    from total_recall.services.ingestion.token_counter import TokenCounter

    try:
        text = Path(args.file).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"Error: could not read {args.file}: {exc}")
        return 1

    model = args.model or app_settings.embedding_deployment
    counter = TokenCounter(default_model=model)
    chunker = TextChunker(counter, max_tokens=app_settings.chunk_max_tokens, model=model)

    print(f"File:    {args.file}")
    print(f"Model:   {model}{' (approximate)' if counter.uses_heuristic else ''}")
    print(f"Tokens:  {counter.count(text, model)}")
    print(f"Chunks:  {len(chunker.chunk(text))} (budget {chunker.max_tokens})")
    print(f"Sample:  {counter.sample(text, model, args.sample)}")
    return 0


def _print_summary(report: IngestionReport, files_found: int) -> None:
    print()
    print("Indexing Summary")
    print("=" * 40)
    print(f"  Files found:   {files_found}")
    print(f"  Indexed:       {report.succeeded}")
    print(f"  Errors:        {len(report.errors)}")
    print(f"  Batches:       {report.batches}")
    print(f"  Time:          {report.ingestion_time:.1f}s")

    if report.errors:
        print("\nErrors:")
        for error in report.errors:
            print(f"  - {error}")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the indexer CLI."""
    parser = argparse.ArgumentParser(
        prog="total-recall",
        description="Index your source code and search it by meaning.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML config file (default: config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Indexer commands")

    # -- index --
    index_parser = subparsers.add_parser("index", help="Index all source files in a directory")
    index_parser.add_argument("directory", help="Root directory to index")
    index_parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Extra path substring to skip (repeatable)",
    )
    index_parser.add_argument("--batch-size", type=int, dest="batch_size", help="Files per upload")
    index_parser.add_argument(
        "--concurrency", type=int, help="Files embedded concurrently within a batch"
    )

    # -- create-index --
    subparsers.add_parser("create-index", help="Create the vector index if it does not exist")

    # -- info --
    subparsers.add_parser("info", help="Show configuration and index metadata")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Show the files closest to a query")
    search_parser.add_argument("query", help="Natural-language query")
    search_parser.add_argument("--top-k", type=int, dest="top_k", default=None)

    # -- tokens --
    tokens_parser = subparsers.add_parser("tokens", help="Count tokens in a file")
    tokens_parser.add_argument("file", help="File to measure")
    tokens_parser.add_argument("--model", default=None, help="Model whose encoding to use")
    tokens_parser.add_argument("--sample", type=int, default=10, help="Tokens to show")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point: parse arguments, load settings, dispatch, exit."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        app_settings = load_settings(
            path=args.config, validate=args.command in _NEEDS_CREDENTIALS
        )
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        for name in exc.missing:
            print(f"  - {name}", file=sys.stderr)
        sys.exit(1)

    configure_logging(app_settings.log_level)

    if args.command == "index":
        exit_code = asyncio.run(_handle_index(args, app_settings))
    elif args.command == "create-index":
        exit_code = asyncio.run(_handle_create_index(app_settings))
    elif args.command == "info":
        exit_code = asyncio.run(_handle_info(app_settings))
    elif args.command == "search":
        exit_code = asyncio.run(_handle_search(args, app_settings))
    elif args.command == "tokens":
        exit_code = _handle_tokens(args, app_settings)
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
