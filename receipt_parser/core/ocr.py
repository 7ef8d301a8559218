"""
OCR functionality for turning receipt images and PDFs into text.
"""

import io
import os
from pathlib import Path
from typing import Optional

from .utils import IMAGE_EXTS, PDF_EXTS

OCR_SPACE_URL = "https://api.ocr.space/parse/image"
OCR_SPACE_TIMEOUT = 30
PROVIDERS = ("tesseract", "ocrspace")


class OCRError(Exception):
    """Raised when the OCR provider cannot return text for a file."""


def _lazy_import_ocr_deps():
    """Lazy import heavy OCR dependencies."""
    global pytesseract, PIL_Image, fitz
    import importlib
    pytesseract = importlib.import_module("pytesseract")
    PIL_Image = importlib.import_module("PIL.Image")
    fitz = importlib.import_module("fitz")  # pymupdf


# Initialize on first use
pytesseract = None
PIL_Image = None
fitz = None


def ocr_image_to_text(img_path: Path) -> str:
    """OCR an image file to text."""
    if pytesseract is None:
        _lazy_import_ocr_deps()

    img = PIL_Image.open(img_path)
    # grayscale improves Tesseract accuracy on receipts
    if img.mode != "L":
        img = img.convert("L")
    return pytesseract.image_to_string(img)


def pdf_to_text(pdf_path: Path) -> str:
    """
    Extract text from a PDF using PyMuPDF.

    Scanned PDFs without a text layer are rasterized page by page and run
    through Tesseract instead.
    """
    if fitz is None:
        _lazy_import_ocr_deps()

    doc = fitz.open(pdf_path.as_posix())
    try:
        chunks = [page.get_text() for page in doc]
        if any(c.strip() for c in chunks):
            return "\n".join(chunks)

        chunks = []
        mat = fitz.Matrix(2, 2)
        for page in doc:
            pix = page.get_pixmap(matrix=mat, alpha=False)
            img = PIL_Image.open(io.BytesIO(pix.tobytes("png")))
            chunks.append(pytesseract.image_to_string(img.convert("L")))
        return "\n".join(chunks)
    finally:
        doc.close()


def ocr_space_to_text(path: Path, api_key: Optional[str] = None,
                      language: str = "eng") -> str:
    """Send a file to the OCR.space API and return the parsed text."""
    import requests

    api_key = api_key or os.getenv("OCR_SPACE_API_KEY")
    if not api_key:
        raise OCRError("OCR_SPACE_API_KEY is not set")

    with path.open("rb") as f:
        try:
            response = requests.post(
                OCR_SPACE_URL,
                files={"file": (path.name, f)},
                data={"apikey": api_key, "language": language,
                      "isOverlayRequired": False, "OCREngine": 2},
                timeout=OCR_SPACE_TIMEOUT,
            )
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise OCRError(f"OCR.space request failed for {path.name}: {e}") from e
        except ValueError as e:
            raise OCRError(f"OCR.space returned invalid JSON for {path.name}") from e

    if result.get("IsErroredOnProcessing"):
        message = result.get("ErrorMessage") or "unknown error"
        if isinstance(message, list):
            message = "; ".join(message)
        raise OCRError(f"OCR.space could not process {path.name}: {message}")

    parsed = result.get("ParsedResults") or []
    return "\n".join(p.get("ParsedText", "") for p in parsed)


def extract_text(path: Path, provider: str = "tesseract",
                 api_key: Optional[str] = None) -> str:
    """
    Extract raw text from a receipt file.

    Args:
        path: Image or PDF file
        provider: "tesseract" (local) or "ocrspace" (OCR.space HTTP API)
        api_key: OCR.space API key (falls back to OCR_SPACE_API_KEY)

    Returns:
        The extracted text, possibly empty
    """
    ext = path.suffix.lower()
    if ext not in IMAGE_EXTS and ext not in PDF_EXTS:
        raise ValueError(f"Unsupported file type: {path}")
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown OCR provider: {provider}")

    if provider == "ocrspace":
        return ocr_space_to_text(path, api_key=api_key)

    try:
        if ext in IMAGE_EXTS:
            return ocr_image_to_text(path)
        return pdf_to_text(path)
    except Exception as e:
        raise OCRError(f"Tesseract OCR failed for {path.name}: {e}") from e
