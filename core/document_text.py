# core/document_text.py
import io
from typing import Callable, Optional
import fitz
import pytesseract
from PIL import Image
from config.settings import settings
from core.entities import Document, ExtractedText
from util.constants import PDF_MEDIA_TYPE
from util.errors import MalformedDocument
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

OcrFn = Callable[[Image.Image], str]


def tesseract_ocr(image: Image.Image) -> str:
    """
    Recognize text in a raster image with Tesseract.
    """
    if settings.TESSERACT_CMD:
        pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD
    return pytesseract.image_to_string(image, lang=settings.OCR_LANGUAGE)


_PAGINATED_TYPES = {"pdf", "xps", "oxps", "epub", "cbz", "fb2", "mobi"}


def _filetype(media_type: str) -> str:
    # "application/pdf" -> "pdf", "application/epub+zip" -> "epub"; anything else is read as PDF
    mt = (media_type or PDF_MEDIA_TYPE).split(";")[0].strip().lower()
    sub = mt.rsplit("/", 1)[-1].split("+")[0]
    return sub if sub in _PAGINATED_TYPES else "pdf"


class DocumentExtractor:
    """
    Turns an uploaded document into ExtractedText.

    Native text layers are read with PyMuPDF; embedded raster images go through
    OCR. Only a payload that cannot be opened at all raises MalformedDocument.
    """

    def __init__(self, ocr: Optional[OcrFn] = None, ocr_enabled: Optional[bool] = None) -> None:
        self._ocr = ocr or tesseract_ocr
        self._ocr_enabled = settings.OCR_ENABLED if ocr_enabled is None else ocr_enabled

    def extract(self, document: Document) -> ExtractedText:
        if not document.data:
            raise MalformedDocument("Uploaded file is empty")
        if document.is_image:
            return self._extract_image(document)
        return self._extract_paginated(document)

    def _extract_paginated(self, document: Document) -> ExtractedText:
        try:
            doc = fitz.open(stream=document.data, filetype=_filetype(document.media_type))
        except Exception:
            # do not log payloads
            logger.warning("extract.open.error media=%s", document.media_type)
            raise MalformedDocument()

        out = ExtractedText()
        with doc:
            pages = doc.page_count
            if pages == 0:
                raise MalformedDocument("Document has no pages")
            with timed(logger, "extract.pages", pages=pages):
                for i in range(pages):
                    self._extract_page(doc, i, out)
        logger.info(
            "extract.ok pages=%d fragments=%d chars=%d",
            pages,
            len(out.fragments),
            len(out.text),
        )
        return out

    def _extract_page(self, doc: "fitz.Document", index: int, out: ExtractedText) -> None:
        try:
            page = doc.load_page(index)
        except Exception:
            logger.warning("extract.page.error page=%d", index + 1)
            out.append("")
            return

        try:
            out.append(page.get_text("text") or "")
        except Exception:
            logger.warning("extract.page.text.error page=%d", index + 1)
            out.append("")

        if not self._ocr_enabled:
            return

        try:
            images = page.get_images(full=True)
        except Exception:
            logger.warning("extract.page.images.error page=%d", index + 1)
            return

        for img in images:
            out.append(self._ocr_embedded(doc, xref=img[0], page=index + 1))

    def _ocr_embedded(self, doc: "fitz.Document", xref: int, page: int) -> str:
        try:
            raw = doc.extract_image(xref)
            if not raw or not raw.get("image"):
                return ""
            with Image.open(io.BytesIO(raw["image"])) as image:
                with timed(logger, "extract.ocr", page=page, xref=xref):
                    return self._ocr(image) or ""
        except Exception:
            logger.warning("extract.ocr.error page=%d xref=%d", page, xref, exc_info=True)
            return ""

    def _extract_image(self, document: Document) -> ExtractedText:
        try:
            image = Image.open(io.BytesIO(document.data))
            image.load()
        except Exception:
            logger.warning("extract.image.open.error media=%s", document.media_type)
            raise MalformedDocument()

        out = ExtractedText()
        if not self._ocr_enabled:
            out.append("")
            return out
        try:
            with timed(logger, "extract.ocr", page=1):
                out.append(self._ocr(image) or "")
        except Exception:
            logger.warning("extract.ocr.error page=1", exc_info=True)
            out.append("")
        finally:
            image.close()
        logger.info("extract.ok pages=1 chars=%d", len(out.text))
        return out
