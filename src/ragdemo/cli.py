from __future__ import annotations

import argparse
from pathlib import Path
import sys

from ragdemo.config import get_settings
from ragdemo.dependencies import build_rag_service
from ragdemo.services.rag.loader import load_documents
from ragdemo.services.rag.service import RagService


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ragdemo",
        description="Ingest documents and ask grounded questions against them",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest .txt/.md files from a directory")
    ingest.add_argument(
        "--source-dir",
        required=True,
        help="Source directory containing .txt/.md documents",
    )

    ask = subparsers.add_parser("ask", help="Answer a question from the ingested documents")
    ask.add_argument("question", help="Question to answer")
    ask.add_argument(
        "--stream",
        action="store_true",
        help="Print the answer as it is generated",
    )

    subparsers.add_parser("clear", help="Remove every ingested chunk")
    return parser


def _run_ingest(service: RagService, source_dir: Path) -> None:
    documents = load_documents(source_dir)
    total_chunks = 0
    for document in documents:
        summary = service.ingest(document.title, document.text)
        total_chunks += summary.chunk_count

    print(
        "[ragdemo] ingest completed "
        f"documents={len(documents)} "
        f"chunks={total_chunks} "
        f"stored={service.chunk_count()}",
        flush=True,
    )


def _run_ask(service: RagService, question: str, *, stream: bool) -> None:
    if not stream:
        print(service.query(question), flush=True)
        return

    for fragment in service.stream_query(question):
        print(fragment, end="", flush=True)
    print(flush=True)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        service = build_rag_service(get_settings())
        if args.command == "ingest":
            _run_ingest(service, Path(args.source_dir))
        elif args.command == "ask":
            _run_ask(service, args.question, stream=args.stream)
        else:
            service.clear_all()
            print("[ragdemo] knowledge base cleared", flush=True)
    except Exception as exc:
        print(f"[ragdemo] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
