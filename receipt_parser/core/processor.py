"""
Main receipt processing orchestration.
"""

import shutil
from pathlib import Path
from typing import List, Dict, Optional

from .utils import sha1_file, slugify, IMAGE_EXTS, PDF_EXTS, money_fmt
from .ocr import extract_text, OCRError
from .models import ParseTrace, failed_receipt
from .pipeline import parse
from .storage import store_file
from .database import init_receipts_db, save_receipt
from .reporting import write_workbook, write_csv, build_summary_pdf


class ReceiptProcessor:
    """Main processor for the receipt OCR, parsing and export pipeline."""

    def __init__(self, incoming_dir: Path, output_dir: Path, subdir_id: str,
                 owner_id: str, db_path: Optional[Path] = None,
                 ocr_provider: str = "tesseract",
                 ocr_api_key: Optional[str] = None,
                 verbose: bool = False):
        """
        Initialize receipt processor.

        Args:
            incoming_dir: Directory with new receipts
            output_dir: Root directory for output batches
            subdir_id: Subdirectory identifier (e.g., week ID)
            owner_id: Identifier of the user the receipts belong to
            db_path: Receipts database (default: <output_dir>/receipts.sqlite)
            ocr_provider: "tesseract" or "ocrspace"
            ocr_api_key: OCR.space API key
            verbose: Whether to show verbose debugging output
        """
        self.incoming_dir = incoming_dir
        self.output_dir = output_dir
        self.subdir_id = subdir_id
        self.owner_id = owner_id
        self.ocr_provider = ocr_provider
        self.ocr_api_key = ocr_api_key
        self.verbose = verbose

        self.batch_dir = output_dir / subdir_id
        self.reports_dir = self.batch_dir / "reports"
        self.processed_dir = self.batch_dir / "processed"
        self.storage_dir = output_dir / "storage"

        for dir_path in [self.incoming_dir, self.output_dir, self.batch_dir,
                         self.reports_dir, self.processed_dir, self.storage_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path or output_dir / "receipts.sqlite"
        init_receipts_db(self.db_path)

    def discover_files(self) -> List[Path]:
        """Discover receipt files in the incoming directory."""
        files = sorted(
            p for p in self.incoming_dir.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTS.union(PDF_EXTS)
        )
        print(f"[INFO] Found {len(files)} file(s) in incoming")
        return files

    def process_file(self, path: Path) -> Dict:
        """
        OCR, parse, store and persist a single receipt file.

        OCR failures and empty OCR text produce a placeholder record so every
        file still ends up in the batch.

        Returns:
            The stored receipt row
        """
        print(f"[INFO] Processing {path.name}")
        sha1 = sha1_file(path)

        try:
            text = extract_text(path, provider=self.ocr_provider, api_key=self.ocr_api_key)
        except OCRError as e:
            print(f"[ERROR] OCR failed for {path.name}: {e}")
            text = None
            fields = failed_receipt(str(e))

        if text is not None:
            if not text.strip():
                print(f"[WARN] No text extracted from {path.name}")
                fields = failed_receipt(f"no text extracted from {path.name}")
            else:
                trace = ParseTrace() if self.verbose else None
                fields = parse(text, trace=trace)
                if trace is not None:
                    self._print_trace(text, trace)

        if self.verbose:
            print(f"  [DEBUG] Merchant: '{fields.merchant}'")
            print(f"  [DEBUG] Category: {fields.category}")
            print(f"  [DEBUG] Date: {fields.date}")
            print(f"  [DEBUG] Amount: {money_fmt(fields.amount)}")
            print(f"  [DEBUG] Description: {fields.description}")
        if not fields.amount:
            print(f"  [WARN] Could not extract amount from {path.name}. Check OCR quality.")

        file_url = store_file(path, self.owner_id, self.storage_dir, sha1=sha1)
        row = save_receipt(self.db_path, self.owner_id, path.name, file_url, fields, sha1=sha1)

        self._move_to_processed(path, fields.category, sha1)
        return row

    def _print_trace(self, text: str, trace: ParseTrace):
        for attempt in trace.date_attempts:
            print(f"  [DEBUG] Date candidate {attempt['text']!r} via {attempt['pattern']}"
                  f" -> {attempt['date']} ({'accepted' if attempt['accepted'] else 'rejected'})")
        for cand in trace.amount_candidates:
            print(f"  [DEBUG] Amount candidate {cand.matched_text!r} via {cand.pattern}"
                  f" = {cand.value} (priority {cand.priority})")
        for decision in trace.merchant_lines:
            print(f"  [DEBUG] Merchant line {decision['line']!r}: "
                  f"{decision.get('matched') or 'skipped, ' + decision.get('skipped', '')}")
        if trace.merchant_source in ("fallback", "default"):
            print(f"  [DEBUG] First 5 lines of OCR text:")
            for i, line in enumerate(text.splitlines()[:5], 1):
                print(f"    {i}: {line[:80]}")
        print(f"  [DEBUG] Category rule: {trace.category_rule or '(none, General)'}")
        print(f"  [DEBUG] Description source: {trace.description_source}")

    def _move_to_processed(self, path: Path, category: str, sha1: str):
        """Move a processed file out of incoming into its category directory."""
        cat_dir = self.processed_dir / slugify(category)
        cat_dir.mkdir(parents=True, exist_ok=True)
        dest = cat_dir / path.name
        if dest.exists():
            # Avoid overwrite by suffixing sha1
            dest = cat_dir / f"{path.stem}_{sha1[:8]}{path.suffix}"
        shutil.move(path.as_posix(), dest.as_posix())

    def process_all(self) -> List[Dict]:
        """Process every receipt in the incoming directory."""
        files = self.discover_files()
        if not files:
            print("No receipt files found in incoming directory.")
            return []

        rows = []
        for file_path in files:
            try:
                rows.append(self.process_file(file_path))
            except Exception as e:
                print(f"[ERROR] Failed {file_path.name}: {e}")

        return rows

    def generate_reports(self, rows: List[Dict]):
        """Write the workbook, CSV and summary PDF for this batch."""
        out_xlsx = self.reports_dir / f"receipt-data-{self.subdir_id}.xlsx"
        write_workbook(rows, out_xlsx)
        print(f"[OK] Wrote {out_xlsx}")

        out_csv = self.reports_dir / "receipts.csv"
        write_csv(rows, out_csv)
        print(f"[OK] Wrote {out_csv}")

        summary_pdf = self.reports_dir / "summary.pdf"
        build_summary_pdf(rows, summary_pdf)
        print(f"[OK] Wrote {summary_pdf}")

        print(f"[OK] Processing complete for {self.subdir_id}. Reports in: {self.reports_dir}")
