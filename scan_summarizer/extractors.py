"""
Text acquisition from scanned or digital documents.

Supports:
- Images (JPG, PNG, etc.) -> preprocessing + OCR
- PDFs -> embedded text, or OCR of rendered pages when there is none
- DOCX files -> paragraph text
- TXT / Markdown files -> file contents with encoding fallback
"""

from pathlib import Path
from typing import Any, Optional
import logging

import cv2
import numpy as np
import pypdf
from docx import Document
from pdf2image import convert_from_path  # type: ignore[import-untyped]

from .ocr import OCREngine, TesseractOCR
from .preprocessing import load_image, prepare_page, preprocess_for_ocr

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif")
TEXT_EXTENSIONS: tuple[str, ...] = (".txt", ".md", ".markdown")


def extract_from_image(
    image_path: str,
    ocr_engine: OCREngine,
    preprocess: bool = True,
    **preprocessing_kwargs: Any
) -> str:
    """
    Recognize the text in an image file.

    Args:
        image_path: Path to image file
        ocr_engine: OCR engine instance to use
        preprocess: Whether to clean the image up first (default: True)
        **preprocessing_kwargs: denoise_method / binarize_method overrides

    Returns:
        Recognized text

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If file is not a valid image
    """
    if preprocess:
        image = preprocess_for_ocr(image_path, **preprocessing_kwargs)
    else:
        image = load_image(image_path)

    return ocr_engine.extract_text(image)


def extract_from_pdf(
    pdf_path: str,
    ocr_engine: OCREngine,
    force_ocr: bool = False,
    dpi: int = 300
) -> str:
    """
    Extract text from a PDF file.

    Embedded text is used when present; scanned PDFs without a text layer
    are rendered page by page and run through OCR.

    Args:
        pdf_path: Path to PDF file
        ocr_engine: OCR engine used for scanned pages
        force_ocr: Always OCR, even when embedded text exists (default: False)
        dpi: Rendering resolution for OCR (default: 300)

    Returns:
        Text of all pages separated by blank lines

    Raises:
        FileNotFoundError: If PDF file doesn't exist
    """
    if not Path(pdf_path).exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    if not force_ocr:
        text = _extract_text_from_pdf(pdf_path)
        if text.strip():
            return text
        logger.info("No embedded text in %s, falling back to OCR", pdf_path)

    return _ocr_pdf_pages(pdf_path, ocr_engine, dpi)


def _extract_text_from_pdf(pdf_path: str) -> str:
    """Read the embedded text layer; empty when the PDF can't be parsed."""
    try:
        reader = pypdf.PdfReader(pdf_path)
        pages: list[str] = [page.extract_text() or "" for page in reader.pages]
        return "\n\n".join(page for page in pages if page)
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", pdf_path, e)
        return ""


def _ocr_pdf_pages(pdf_path: str, ocr_engine: OCREngine, dpi: int = 300) -> str:
    """Render each PDF page and OCR it."""
    try:
        pil_pages = convert_from_path(pdf_path, dpi=dpi)
    except Exception as e:
        raise RuntimeError(f"Failed to render PDF pages: {e}") from e

    page_texts: list[str] = []
    for i, pil_page in enumerate(pil_pages, start=1):
        logger.debug("OCR processing page %d/%d of %s", i, len(pil_pages), pdf_path)
        page = cv2.cvtColor(np.array(pil_page.convert("RGB")), cv2.COLOR_RGB2BGR)
        page_texts.append(ocr_engine.extract_text(prepare_page(page)))

    return "\n\n".join(page_texts)


def extract_from_docx(docx_path: str) -> str:
    """
    Extract paragraph text from a DOCX file.

    Raises:
        FileNotFoundError: If DOCX file doesn't exist
        RuntimeError: If the file can't be parsed
    """
    if not Path(docx_path).exists():
        raise FileNotFoundError(f"DOCX file not found: {docx_path}")

    try:
        doc = Document(docx_path)
    except Exception as e:
        raise RuntimeError(f"Failed to extract text from DOCX: {e}") from e

    paragraphs: list[str] = [p.text.strip() for p in doc.paragraphs]
    return "\n\n".join(p for p in paragraphs if p)


def extract_from_text_file(path: str) -> str:
    """
    Read a plain text or Markdown file.

    UTF-8 is tried first, then latin-1.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Text file not found: {path}")

    try:
        return path_obj.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return path_obj.read_text(encoding="latin-1")


def extract_text(
    source: str,
    ocr_engine: Optional[OCREngine] = None,
    source_type: Optional[str] = None,
    **kwargs: Any
) -> str:
    """
    Extract text from a document, picking the reader by file type.

    Args:
        source: File path
        ocr_engine: OCR engine for images and scanned PDFs (default: TesseractOCR)
        source_type: Force 'image', 'pdf', 'docx' or 'text' instead of
            detecting it from the extension
        **kwargs: Additional arguments passed to the specific extractor

    Returns:
        Extracted text

    Raises:
        ValueError: If the source type is not supported
    """
    if ocr_engine is None:
        ocr_engine = TesseractOCR()

    if source_type is None:
        source_type = _detect_source_type(source)

    if source_type == "image":
        return extract_from_image(source, ocr_engine, **kwargs)
    elif source_type == "pdf":
        return extract_from_pdf(source, ocr_engine, **kwargs)
    elif source_type == "docx":
        return extract_from_docx(source)
    elif source_type == "text":
        return extract_from_text_file(source)
    else:
        raise ValueError(f"Unsupported source type: {source_type}")


def needs_ocr(source: str) -> bool:
    """Whether reading the source may involve OCR."""
    return Path(source).suffix.lower() in IMAGE_EXTENSIONS + (".pdf",)


def _detect_source_type(source: str) -> str:
    """Detect the source type from the file extension."""
    suffix = Path(source).suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return "image"
    elif suffix == ".pdf":
        return "pdf"
    elif suffix == ".docx":
        return "docx"
    elif suffix in TEXT_EXTENSIONS:
        return "text"
    else:
        raise ValueError(f"Cannot determine source type for: {source}")
