"""Text extraction for ingested documents.

PDFs are read from their text layer with pdfplumber; scanned PDFs (no text
layer, or one pdfplumber cannot open) are rasterized with pdf2image and OCR'd
with Tesseract. Images go straight to Tesseract. CSV exports are read as-is.
"""

import logging
import re
from pathlib import Path

import pdfplumber
import pytesseract
from pdf2image import convert_from_path
from PIL import Image

from backend.config import settings
from backend.models import ExtractionMethod, ExtractionResult
from backend.parsers.validation import ValidationError, decode_text

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tiff", ".tif", ".bmp"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS | IMAGE_EXTENSIONS | CSV_EXTENSIONS

_FULLWIDTH_DIGITS = {0xFF10 + i: str(i) for i in range(10)}
_HORIZONTAL_WS = re.compile(r"[ \t]+")
_BLANK_LINES = re.compile(r"\n{3,}")
# Common Tesseract confusions next to digits
_OCR_DIGIT_FIXES = [
    (re.compile(r"\bO(?=\d)"), "0"),
    (re.compile(r"(?<=\d)O\b"), "0"),
    (re.compile(r"\bl(?=\d)"), "1"),
    (re.compile(r"(?<=\d)l\b"), "1"),
]


class ExtractionError(Exception):
    """Raised when no text could be extracted from a document."""

    pass


def extract_text(file_path: Path | str) -> ExtractionResult:
    """
    Extract plain text from a document, choosing a strategy by extension.

    Args:
        file_path: Path to a PDF, image or CSV file

    Returns:
        The extracted text and the method used

    Raises:
        ExtractionError: If the type is unsupported or extraction fails
    """
    path = Path(file_path)
    extension = path.suffix.lower()

    if extension in PDF_EXTENSIONS:
        return extract_pdf(path)
    if extension in IMAGE_EXTENSIONS:
        return extract_image(path)
    if extension in CSV_EXTENSIONS:
        return read_csv(path)

    raise ExtractionError(f"Unsupported file type: {extension or path.name}")


def extract_pdf(path: Path) -> ExtractionResult:
    """Read the PDF text layer, falling back to OCR for scanned documents."""
    try:
        with pdfplumber.open(path) as pdf:
            page_count = len(pdf.pages)
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        logger.warning(f"Text layer extraction failed for {path.name}, falling back to OCR: {e}")
        return _ocr_pdf(path)

    text = "\n\n".join(page.strip() for page in pages if page.strip())
    if not text:
        logger.info(f"{path.name} has no text layer, falling back to OCR")
        return _ocr_pdf(path)

    logger.info(f"Extracted {len(text)} chars from {page_count} pages of {path.name}")
    return ExtractionResult(text=text, method=ExtractionMethod.PDF, page_count=page_count)


def _ocr_pdf(path: Path) -> ExtractionResult:
    try:
        images = convert_from_path(str(path))
        page_texts = []
        confidences = []
        for image in images:
            text, confidence = _ocr_image(image)
            page_texts.append(text)
            if confidence is not None:
                confidences.append(confidence)
    except Exception as e:
        raise ExtractionError(f"OCR failed for {path.name}: {e}") from e

    text = clean_ocr_text("\n\n".join(page_texts))
    confidence = sum(confidences) / len(confidences) if confidences else None
    logger.info(f"OCR'd {len(images)} pages of {path.name} (confidence {_format_confidence(confidence)})")
    return ExtractionResult(text=text, method=ExtractionMethod.OCR, confidence=confidence, page_count=len(images))


def extract_image(path: Path) -> ExtractionResult:
    """OCR a scanned statement image."""
    try:
        with Image.open(path) as image:
            text, confidence = _ocr_image(image)
    except Exception as e:
        raise ExtractionError(f"OCR failed for {path.name}: {e}") from e

    logger.info(f"OCR'd {path.name} (confidence {_format_confidence(confidence)})")
    return ExtractionResult(
        text=clean_ocr_text(text), method=ExtractionMethod.OCR, confidence=confidence, page_count=1
    )


def _ocr_image(image: Image.Image) -> tuple[str, float | None]:
    """Run Tesseract on one page; returns the text and mean word confidence."""
    text = pytesseract.image_to_string(image, lang=settings.ocr_language)
    data = pytesseract.image_to_data(image, lang=settings.ocr_language, output_type=pytesseract.Output.DICT)

    # Tesseract reports -1 for non-word boxes
    scores = [float(conf) for conf in data.get("conf", []) if float(conf) >= 0]
    confidence = sum(scores) / len(scores) if scores else None
    return text, confidence


def read_csv(path: Path) -> ExtractionResult:
    """Read a CSV export verbatim."""
    try:
        text = decode_text(path.read_bytes())
    except (OSError, ValidationError) as e:
        raise ExtractionError(f"Could not read {path.name}: {e}") from e

    return ExtractionResult(text=text, method=ExtractionMethod.CSV)


def clean_ocr_text(text: str) -> str:
    """
    Normalize raw Tesseract output.

    Line structure is preserved because the parsers match row by row; only
    runs of spaces/tabs and of blank lines are collapsed. Full-width digits
    become ASCII, and a letter O or l touching a digit becomes 0 or 1.
    """
    text = text.translate(_FULLWIDTH_DIGITS)
    lines = [_HORIZONTAL_WS.sub(" ", line).strip() for line in text.splitlines()]
    text = _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()

    for pattern, replacement in _OCR_DIGIT_FIXES:
        text = pattern.sub(replacement, text)
    return text


def _format_confidence(confidence: float | None) -> str:
    return f"{confidence:.1f}" if confidence is not None else "n/a"
