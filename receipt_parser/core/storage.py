"""
Local file storage for original receipt files.
"""

import shutil
from pathlib import Path
from typing import Optional

from .utils import sha1_file, slugify


def store_file(path: Path, owner_id: str, storage_dir: Path,
               sha1: Optional[str] = None) -> str:
    """
    Copy a receipt file into the owner's storage folder.

    An existing file with the same name is never overwritten; the copy gets
    the first 8 characters of its SHA1 appended instead.

    Returns:
        file:// URL of the stored copy
    """
    owner_dir = storage_dir / (slugify(owner_id) or "anonymous")
    owner_dir.mkdir(parents=True, exist_ok=True)

    dest = owner_dir / path.name
    if dest.exists():
        sha1 = sha1 or sha1_file(path)
        dest = owner_dir / f"{path.stem}_{sha1[:8]}{path.suffix}"
    shutil.copy2(path.as_posix(), dest.as_posix())
    return dest.resolve().as_uri()
