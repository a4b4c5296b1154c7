# =============================================================================
# zeb_ai/cli/ingest.py -- Knowledge-base management CLI
# =============================================================================
#
# Operator tool for the Zeb AI knowledge base, run outside the web server.
# It builds the same components as the API (see main._build_all) against the
# configured SQLite database, so documents added here are immediately
# visible to the running service.
#
# Supported subcommands:
#
#   text    -- Ingest a title + inline text (or text read from --file)
#   file    -- Ingest a PDF / DOCX / TXT / Markdown file
#   list    -- List stored documents, newest first
#   delete  -- Delete a document (and its chunks)
#   ask     -- Ask a question from the terminal
#   stats   -- Document count and provider status
#
# Usage examples:
#   python -m zeb_ai.cli.ingest text --title "Fire Drill" --content "..."
#   python -m zeb_ai.cli.ingest file --path handbook.pdf --category emergency
#   python -m zeb_ai.cli.ingest list --category health
#   python -m zeb_ai.cli.ingest ask "Where is the nearest fire exit?"
# =============================================================================

"""Standalone CLI for managing the Zeb AI knowledge base."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from zeb_ai.config.settings import Settings
from zeb_ai.utils.errors import ZebAIError

_CLI_OWNER = "cli"


async def _open_components(app_settings: Settings) -> dict[str, Any]:
    """Build and initialize the application components for one CLI run."""
    # Deferred so `--help` does not pay for the provider SDK imports.
    from zeb_ai.config.loader import build_rag_config, load_config
    from zeb_ai.main import _build_all

    rag_config = build_rag_config(load_config(settings=app_settings))
    components = _build_all(app_settings, rag_config)
    await components["document_store"].initialize()
    await components["conversation_store"].initialize()
    return components


async def _close_components(components: dict[str, Any]) -> None:
    await components["orchestrator"].drain()
    await components["http_client"].aclose()


def _print_ingestion(result: Any) -> None:
    print("\nIngestion complete:")
    print(f"  Document ID:     {result.document_id}")
    print(f"  Title:           {result.title}")
    print(f"  Category:        {result.category}")
    print(f"  Chunks created:  {result.chunks_created}")
    print(f"  Embedded:        {result.embedded}")
    if result.embedding_failures:
        print(f"  Lexical only:    {result.embedding_failures}")
    print(f"  Time:            {result.ingestion_time:.2f}s")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_text(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest inline text, or the contents of a UTF-8 text file."""
    if args.file:
        content = Path(args.file).read_text(encoding="utf-8")
    else:
        content = args.content or ""
    print(f"Ingesting text: {args.title}")
    result = await components["orchestrator"].ingest_text(
        title=args.title,
        content=content,
        owner_id=_CLI_OWNER,
        category=args.category,
        tags=args.tags,
    )
    _print_ingestion(result)
    return 0


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest a PDF, DOCX or plain-text file."""
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1
    print(f"Ingesting file: {path.name}")
    result = await components["orchestrator"].ingest_file(
        data=path.read_bytes(),
        filename=path.name,
        owner_id=_CLI_OWNER,
        title=args.title,
        category=args.category,
        tags=args.tags,
    )
    _print_ingestion(result)
    return 0


async def _handle_list(args: argparse.Namespace, components: dict[str, Any]) -> int:
    documents, total = await components["ingestion_service"].list_documents(
        category=args.category,
        include_chunks=args.include_chunks,
        limit=args.limit,
        page=args.page,
    )
    print(f"Documents ({total} total, page {args.page})")
    print("=" * 60)
    for doc in documents:
        marker = f" [{doc.chunk_count} chunks]" if doc.chunk_count else ""
        print(f"  {doc.id}  {doc.category:<12} {doc.title}{marker}")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    if not args.yes:
        answer = input(f"Delete document {args.document_id} and its chunks? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 0
    removed = await components["orchestrator"].delete_document(args.document_id)
    print(f"Deleted {removed} record(s).")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    result = await components["orchestrator"].ask(
        args.question,
        owner_id=_CLI_OWNER,
        conversation_id=args.conversation,
    )
    print(result.answer)
    if result.sources:
        print("\nSources:")
        for source in result.sources:
            relevance = f" ({source.similarity * 100:.1f}%)" if source.similarity is not None else ""
            print(f"  - {source.title}{relevance}")
    if result.conversation_id:
        print(f"\nConversation: {result.conversation_id}")
    return 0


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    count = await components["ingestion_service"].count()
    registry = components["provider_registry"]
    print("Knowledge Base")
    print("=" * 40)
    print(f"  Stored documents:   {count}")
    print(f"  LLM provider:       {registry['llm_provider'] or 'not configured'}")
    print(f"  Embedding provider: {registry['embedding_provider'] or 'not configured'}")
    return 0


_HANDLERS = {
    "text": _handle_text,
    "file": _handle_file,
    "list": _handle_list,
    "delete": _handle_delete,
    "ask": _handle_ask,
    "stats": _handle_stats,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = await _open_components(app_settings)
    try:
        return await _HANDLERS[args.command](args, components)
    except ZebAIError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        await _close_components(components)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _split_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the knowledge-base CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m zeb_ai.cli.ingest",
        description="Manage the Zeb AI campus-safety knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Knowledge-base commands")

    # -- text --
    text_parser = subparsers.add_parser("text", help="Ingest a title and text body")
    text_parser.add_argument("--title", required=True, help="Document title")
    source = text_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--content", help="Document body")
    source.add_argument("--file", help="Read the body from a UTF-8 text file")
    text_parser.add_argument("--category", help="Category (default: other)")
    text_parser.add_argument("--tags", type=_split_tags, default=[], help="Comma-separated tags")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a PDF, DOCX or text file")
    file_parser.add_argument("--path", required=True, help="Path to the file")
    file_parser.add_argument("--title", help="Document title (default: file name)")
    file_parser.add_argument("--category", help="Category (default: other)")
    file_parser.add_argument("--tags", type=_split_tags, default=[], help="Comma-separated tags")

    # -- list --
    list_parser = subparsers.add_parser("list", help="List stored documents")
    list_parser.add_argument("--category", help="Only documents in this category")
    list_parser.add_argument(
        "--include-chunks",
        action="store_true",
        dest="include_chunks",
        help="Also list individual chunks",
    )
    list_parser.add_argument("--limit", type=int, default=20, help="Page size (default: 20)")
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document and its chunks")
    delete_parser.add_argument("document_id", help="Document ID")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a campus-safety question")
    ask_parser.add_argument("question", help="The question")
    ask_parser.add_argument("--conversation", help="Continue an existing conversation ID")

    # -- stats --
    subparsers.add_parser("stats", help="Show document count and provider status")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse the subcommand and dispatch to its handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    exit_code = asyncio.run(_run(args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
