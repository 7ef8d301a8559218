"""
Database operations for receipt storage.
"""

import sqlite3
import uuid
import datetime as dt
from pathlib import Path
from typing import List, Dict, Optional

from .models import ReceiptFields, CATEGORIES

COLUMNS = ["id", "owner_id", "file_name", "file_url", "sha1", "date", "merchant",
           "category", "amount", "description", "ocr_text", "created_at"]

EDITABLE_FIELDS = {"date", "merchant", "category", "amount", "description"}


class ReceiptNotFoundError(LookupError):
    """Raised when no stored receipt has the requested id."""


def init_receipts_db(db_path: Path):
    """Initialize the receipts database."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS receipts (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            file_name TEXT,
            file_url TEXT,
            sha1 TEXT,
            date TEXT,
            merchant TEXT,
            category TEXT,
            amount REAL,
            description TEXT,
            ocr_text TEXT,
            created_at TEXT
        )
        """)
        cur.execute("""
        CREATE INDEX IF NOT EXISTS idx_receipts_owner
        ON receipts(owner_id)
        """)
        conn.commit()


def _row_to_dict(row) -> Dict:
    return dict(zip(COLUMNS, row))


def get_receipt(db_path: Path, receipt_id: str) -> Dict:
    """Fetch one stored receipt."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"SELECT {', '.join(COLUMNS)} FROM receipts WHERE id = ?", (receipt_id,))
        row = cur.fetchone()
    if row is None:
        raise ReceiptNotFoundError(receipt_id)
    return _row_to_dict(row)


def save_receipt(db_path: Path, owner_id: str, file_name: str, file_url: Optional[str],
                 fields: ReceiptFields, sha1: Optional[str] = None) -> Dict:
    """
    Persist a parsed receipt for an owner.

    Returns:
        The stored row, including its generated id
    """
    receipt_id = uuid.uuid4().hex
    created_at = dt.datetime.now().isoformat(timespec="seconds")
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO receipts
            (id, owner_id, file_name, file_url, sha1, date, merchant, category,
             amount, description, ocr_text, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (receipt_id, owner_id, file_name, file_url, sha1, fields.date,
              fields.merchant, fields.category, fields.amount, fields.description,
              fields.raw_text, created_at))
        conn.commit()
    return get_receipt(db_path, receipt_id)


def get_user_receipts(db_path: Path, owner_id: str) -> List[Dict]:
    """All receipts stored for an owner, newest first."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {', '.join(COLUMNS)}
            FROM receipts
            WHERE owner_id = ?
            ORDER BY created_at DESC, rowid DESC
        """, (owner_id,))
        return [_row_to_dict(r) for r in cur.fetchall()]


def update_receipt(db_path: Path, receipt_id: str, updates: Dict) -> Dict:
    """
    Apply user edits to a stored receipt.

    Only date, merchant, category, amount and description can be changed.
    """
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if "category" in updates and updates["category"] not in CATEGORIES:
        raise ValueError(f"Unknown category: {updates['category']}")
    if "amount" in updates and float(updates["amount"]) < 0:
        raise ValueError("Amount cannot be negative")

    # make sure it exists before touching anything
    get_receipt(db_path, receipt_id)
    if not updates:
        return get_receipt(db_path, receipt_id)

    keys = sorted(updates)
    assignments = ", ".join(f"{k} = ?" for k in keys)
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute(f"UPDATE receipts SET {assignments} WHERE id = ?",
                    [updates[k] for k in keys] + [receipt_id])
        conn.commit()
    return get_receipt(db_path, receipt_id)


def delete_receipt(db_path: Path, receipt_id: str):
    """Delete a stored receipt."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM receipts WHERE id = ?", (receipt_id,))
        deleted = cur.rowcount
        conn.commit()
    if not deleted:
        raise ReceiptNotFoundError(receipt_id)
