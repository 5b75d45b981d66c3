"""CLI interface for signflow: ingest, sign and export PDFs."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import (
    clear_ai_config,
    get_ai_config_path,
    get_app_name,
    get_app_version,
    get_store_path,
    load_ai_config,
    set_ai_config,
)
from ..config.profile_manager import get_profile, set_profile
from ..models.mark import MarkDecodeError
from ..models.signed_document import DocumentRecord
from ..pipeline.embedder import PageOutOfRangeError
from ..pipeline.pdf_renderer import PDFRenderError, render_page_to_image
from ..pipeline.placement_store import PlacementNotFoundError
from ..pipeline.reader import DocumentDecodeError
from ..storage import DocumentNotFoundError, DocumentStore
from ..workflow import SigningSession, export_bytes, export_filename, ingest_document

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Raised for invalid command-line input."""
    pass


def _format_row(record: DocumentRecord) -> str:
    tags = ", ".join(record.tags)
    return (
        f"{record.id}  {record.status.value:<8}  "
        f"{record.signed_count}/{len(record.placements)}  "
        f"{record.title} ({record.filename})  [{tags}]"
    )


def cmd_ingest(args, store: DocumentStore) -> int:
    pdf_path = Path(args.pdf)
    if not pdf_path.is_file():
        raise CLIError(f"File not found: {pdf_path}")
    record = ingest_document(
        pdf_path.read_bytes(),
        pdf_path.name,
        analyze=not args.no_analyze,
        profile=get_profile(),
    )
    store.put(record)
    print(record.id)
    print(f"  Title: {record.title}")
    print(f"  Pages: {record.page_count}")
    print(f"  Placeholders: {len(record.placements)}")
    return 0


def cmd_list(args, store: DocumentStore) -> int:
    records = store.list(query=args.query, status=args.status)
    if not records:
        print("No documents found.")
        return 0
    for record in records:
        print(_format_row(record))
    return 0


def cmd_show(args, store: DocumentStore) -> int:
    record = store.get(args.id)
    print(f"ID:       {record.id}")
    print(f"Title:    {record.title}")
    print(f"File:     {record.filename}")
    print(f"Uploaded: {record.uploaded_at.isoformat()}")
    print(f"Status:   {record.status.value}")
    print(f"Summary:  {record.summary}")
    print(f"Tags:     {', '.join(record.tags)}")
    print(f"Pages:    {record.page_count}")
    print(f"Progress: {record.signed_count} / {len(record.placements)} signatures")
    for p in record.placements:
        state = "signed" if p.is_signed else "pending"
        pos = p.position
        print(
            f"  {p.id}  page {p.page_index + 1}  "
            f"x={pos.x:.4f} y={pos.y:.4f} w={pos.width:.4f} h={pos.height:.4f}  {state}"
        )
    return 0


def cmd_sign(args, store: DocumentStore) -> int:
    record = store.get(args.id)
    mark_path = Path(args.mark)
    if not mark_path.is_file():
        raise CLIError(f"Mark image not found: {mark_path}")
    session = SigningSession(record)
    session.attach_mark(args.placement_id, mark_path.read_bytes())
    if args.finalize:
        record = session.finalize()
    else:
        record = session.current_record()
    store.put(record)
    signed, total = session.progress()
    print(f"{signed} / {total} signatures")
    return 0


def cmd_finalize(args, store: DocumentStore) -> int:
    session = SigningSession(store.get(args.id))
    record = session.finalize()
    store.put(record)
    print(f"Finalized {record.id}: {record.status.value}")
    return 0


def cmd_export(args, store: DocumentStore) -> int:
    record = store.get(args.id)
    output = Path(args.output) if args.output else Path(export_filename(record))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(export_bytes(record))
    if record.signed_pdf is None:
        logger.warning("Document %s has not been finalized; exported original", record.id)
    print(str(output))
    return 0


def cmd_render(args, store: DocumentStore) -> int:
    record = store.get(args.id)
    if args.page < 1 or args.page > record.page_count:
        raise CLIError(f"Page {args.page} out of range (document has {record.page_count} pages)")
    scale = args.scale if args.scale is not None else get_profile().render_scale
    path = render_page_to_image(
        record.original_pdf,
        args.page - 1,
        args.output,
        scale=scale,
        placements=record.placements,
    )
    print(path)
    return 0


def cmd_delete(args, store: DocumentStore) -> int:
    if store.delete(args.id):
        print(f"Deleted {args.id}")
    else:
        print(f"Document {args.id} not found")
    return 0


def _mask_key(key: Optional[str]) -> str:
    if not key:
        return "(not set)"
    return f"...{key[-4:]}" if len(key) > 8 else "****"


def cmd_config(args, store: DocumentStore) -> int:
    """Show, save or clear the saved AI analysis settings."""
    if args.action == "clear":
        clear_ai_config()
        print("AI configuration cleared")
        return 0

    config = load_ai_config()
    if args.action == "set":
        api_key = args.api_key
        enabled = not args.disable
        if enabled and not api_key and not config.get("api_key"):
            raise CLIError("An API key is required to enable AI analysis (use --api-key)")
        set_ai_config(enabled=enabled, provider=args.provider, model=args.model, api_key=api_key)
        config = load_ai_config()

    print(f"Config file: {get_ai_config_path()}")
    print(f"Enabled:  {config.get('enabled', False)}")
    print(f"Provider: {config.get('provider', '(not set)')}")
    print(f"Model:    {config.get('model', '(not set)')}")
    print(f"API key:  {_mask_key(config.get('api_key'))}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="signflow",
        description="Find signature placeholders in PDFs, attach marks and export signed copies"
    )
    parser.add_argument("--version", action="version", version=f"{get_app_name()} {get_app_version()}")
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Path to the document store JSON file (default: data/documents.json)"
    )
    parser.add_argument(
        "--profile",
        type=str,
        default="default",
        help="Scan profile name (default: default)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ingest", help="Add a PDF and detect signature placeholders")
    p.add_argument("pdf", help="Path to PDF file")
    p.add_argument("--no-analyze", action="store_true", help="Skip AI metadata analysis")
    p.set_defaults(func=cmd_ingest)

    p = sub.add_parser("list", help="List documents, newest first")
    p.add_argument("--query", help="Filter by title or filename (case-insensitive)")
    p.add_argument("--status", choices=["all", "signed", "unsigned"], default="all")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show a document and its placements")
    p.add_argument("id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("sign", help="Attach a mark image to a placement")
    p.add_argument("id")
    p.add_argument("placement_id")
    p.add_argument("mark", help="PNG or JPEG image of the signature")
    p.add_argument("--finalize", action="store_true", help="Embed marks after attaching")
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("finalize", help="Embed attached marks into the PDF")
    p.add_argument("id")
    p.set_defaults(func=cmd_finalize)

    p = sub.add_parser("export", help="Write the signed (or original) PDF")
    p.add_argument("id")
    p.add_argument("--output", help="Output path (default: <name>_signed.pdf)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("render", help="Render a page preview with placement boxes")
    p.add_argument("id")
    p.add_argument("page", type=int, help="Page number (1-based)")
    p.add_argument("--scale", type=float, default=None, help="Render scale (default: profile)")
    p.add_argument("--output", required=True, help="Output PNG path")
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("delete", help="Remove a document")
    p.add_argument("id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("config", help="Show or change saved AI analysis settings")
    config_sub = p.add_subparsers(dest="action", required=True)
    config_sub.add_parser("show", help="Print the saved settings")
    p_set = config_sub.add_parser("set", help="Save settings")
    p_set.add_argument("--provider", choices=["openai", "claude"], required=True)
    p_set.add_argument("--model", required=True, help="Model name")
    p_set.add_argument("--api-key", default=None, help="API key (keeps the saved key if omitted)")
    p_set.add_argument("--disable", action="store_true", help="Save the settings with analysis turned off")
    config_sub.add_parser("clear", help="Remove all saved settings")
    p.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        set_profile(args.profile)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    store = DocumentStore(args.store or get_store_path())

    try:
        exit_code = args.func(args, store)
    except (DocumentNotFoundError, PlacementNotFoundError,
            DocumentDecodeError, MarkDecodeError, PageOutOfRangeError, PDFRenderError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
