#!/usr/bin/env python3
"""
Main CLI entrypoint for the receipt parser.
"""

import argparse
import json
import os
import sys
from pathlib import Path

from receipt_parser.core.utils import get_current_week
from receipt_parser.core.processor import ReceiptProcessor
from receipt_parser.core.pipeline import parse, parse_with_trace
from receipt_parser.core.database import get_user_receipts
from receipt_parser.core.reporting import write_workbook
from receipt_parser.core.ocr import PROVIDERS


def _cmd_process(args) -> int:
    provider = args.ocr_provider or os.getenv("RECEIPT_OCR_PROVIDER", "tesseract")
    if provider not in PROVIDERS:
        print(f"[ERROR] Invalid OCR provider: {provider}")
        print(f"[ERROR] Must be one of: {', '.join(PROVIDERS)}")
        return 1

    subdir_id = args.subdir if args.subdir else get_current_week()
    print(f"[INFO] Processing receipts for: {subdir_id}")
    print(f"[INFO] OCR: {provider}")

    processor = ReceiptProcessor(
        incoming_dir=Path(args.incoming),
        output_dir=Path(args.output),
        subdir_id=subdir_id,
        owner_id=args.owner,
        db_path=Path(args.db) if args.db else None,
        ocr_provider=provider,
        ocr_api_key=os.getenv("OCR_SPACE_API_KEY"),
        verbose=args.verbose,
    )

    rows = processor.process_all()
    if not rows:
        return 0

    processor.generate_reports(rows)
    return 0


def _cmd_parse(args) -> int:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        path = Path(args.file)
        if not path.exists():
            print(f"[ERROR] No such file: {path}", file=sys.stderr)
            return 1
        text = path.read_text(encoding="utf-8", errors="replace")

    if args.trace:
        fields, trace = parse_with_trace(text)
        out = {"fields": fields.to_dict(), "trace": trace.to_dict()}
    else:
        out = parse(text).to_dict()

    if not args.include_text:
        (out["fields"] if args.trace else out).pop("raw_text", None)

    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


def _cmd_export(args) -> int:
    if not args.db:
        print("[ERROR] No database given (use --db or RECEIPT_DB)")
        return 1
    db_path = Path(args.db)
    if not db_path.exists():
        print(f"[ERROR] No such database: {db_path}")
        return 1

    rows = get_user_receipts(db_path, args.owner)
    if not rows:
        print(f"[WARN] No receipts stored for {args.owner}")
        return 1

    out = Path(args.out)
    write_workbook(rows, out)
    print(f"[OK] Exported {len(rows)} receipt(s) to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="receipt-parser",
        description="OCR receipts, parse them into structured records and export spreadsheets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process receipts in ./incoming with all defaults
  receipt-parser process

  # Use the OCR.space API instead of local Tesseract
  OCR_SPACE_API_KEY=... receipt-parser process --ocr-provider ocrspace

  # Parse OCR text from stdin and show how each field was chosen
  cat receipt.txt | receipt-parser parse - --trace

  # Export everything stored for a user
  receipt-parser export --owner alice --out receipts.xlsx
        """
    )
    sub = parser.add_subparsers(dest="command")

    default_owner = os.getenv("RECEIPT_OWNER", "local")
    default_db = os.getenv("RECEIPT_DB")

    p = sub.add_parser("process", help="OCR, parse and store a folder of receipts")
    p.add_argument("--incoming", default="./incoming",
                   help="Folder with new receipts (default: ./incoming)")
    p.add_argument("--output", default="./output",
                   help="Root folder for output batches (default: ./output)")
    p.add_argument("--subdir",
                   help="Subdirectory identifier (e.g., 2025-W43). Auto-generates current week if not specified")
    p.add_argument("--owner", default=default_owner,
                   help="Owner id the receipts are stored under (default: local, or RECEIPT_OWNER env var)")
    p.add_argument("--db", default=default_db,
                   help="Receipts database (default: <output>/receipts.sqlite, or RECEIPT_DB env var)")
    p.add_argument("--ocr-provider", choices=list(PROVIDERS),
                   help="OCR provider (default: tesseract, or RECEIPT_OCR_PROVIDER env var)")
    p.add_argument("--verbose", "-v", action="store_true",
                   help="Show detailed parsing information for debugging")
    p.set_defaults(func=_cmd_process)

    p = sub.add_parser("parse", help="Parse OCR text into fields and print JSON")
    p.add_argument("file", help="Text file with OCR output, or - for stdin")
    p.add_argument("--trace", action="store_true",
                   help="Include the candidates and decisions behind each field")
    p.add_argument("--include-text", action="store_true",
                   help="Include the raw text in the output")
    p.set_defaults(func=_cmd_parse)

    p = sub.add_parser("export", help="Export a user's stored receipts to an Excel workbook")
    p.add_argument("--owner", default=default_owner,
                   help="Owner id (default: local, or RECEIPT_OWNER env var)")
    p.add_argument("--db", default=default_db,
                   help="Receipts database (or RECEIPT_DB env var)")
    p.add_argument("--out", default="receipt-data.xlsx",
                   help="Workbook to write (default: receipt-data.xlsx)")
    p.set_defaults(func=_cmd_export)

    return parser


def main(argv=None):
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
