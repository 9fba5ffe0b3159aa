"""Single-page PDF rendering of a ReportDocument with the reportlab canvas API."""

import base64
import re
from functools import lru_cache
from io import BytesIO
from typing import Optional

import httpx
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from listing_traffic.services.report_document import ReportDocument
from listing_traffic.services.report_metrics import ReportConfig
from listing_traffic.utils.errors import ReportRenderError
from listing_traffic.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

NAVY = colors.HexColor("#1f2937")
MUTED = colors.HexColor("#6b7280")
ACCENT = colors.HexColor("#dc2626")
PANEL = colors.HexColor("#f9fafb")
BORDER = colors.HexColor("#e5e7eb")

MARGIN = 0.6 * inch
FOOTER_TOP = MARGIN + 70


def load_logo_data_url(path: Optional[str] = None) -> str:
    """Base64 PNG data URL for the report logo; '' when the file can't be read."""
    return _read_logo_data_url(path or ReportConfig.LOGO_PATH)


@lru_cache(maxsize=None)
def _read_logo_data_url(path: str) -> str:
    # Read once per path for the life of the process
    try:
        with open(path, "rb") as f:
            encoded = base64.b64encode(f.read()).decode("ascii")
        return f"data:image/png;base64,{encoded}"
    except OSError as e:
        logger.warning("Report logo unavailable", path=path, error=str(e))
        return ""


def report_filename(listing_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", listing_name) + "_Traffic_Report.pdf"


def _image_from_data_url(data_url: str) -> Optional[ImageReader]:
    if not data_url:
        return None
    try:
        _, encoded = data_url.split(",", 1)
        reader = ImageReader(BytesIO(base64.b64decode(encoded)))
        reader.getSize()
        return reader
    except Exception as e:
        logger.warning("Could not decode logo", error=str(e))
        return None


def _image_from_url(url: Optional[str]) -> Optional[ImageReader]:
    if not url:
        return None
    try:
        response = httpx.get(url, timeout=ReportConfig.IMAGE_FETCH_TIMEOUT_SECONDS, follow_redirects=True)
        response.raise_for_status()
        reader = ImageReader(BytesIO(response.content))
        reader.getSize()
        return reader
    except Exception as e:
        logger.warning("Listing image unavailable", error=str(e))
        return None


def _fit(text: str, font: str, size: float, max_width: float) -> str:
    """Truncate with an ellipsis so ``text`` fits in ``max_width`` points."""
    if stringWidth(text, font, size) <= max_width:
        return text
    while text and stringWidth(text + "...", font, size) > max_width:
        text = text[:-1]
    return text + "..."


def _panel(c: canvas.Canvas, x: float, top: float, width: float, height: float) -> None:
    c.setFillColor(PANEL)
    c.setStrokeColor(BORDER)
    c.roundRect(x, top - height, width, height, radius=6, stroke=1, fill=1)


def _section_title(c: canvas.Canvas, x: float, y: float, title: str) -> None:
    c.setFillColor(ACCENT)
    c.rect(x, y - 2, 3, 14, stroke=0, fill=1)
    c.setFillColor(NAVY)
    c.setFont("Helvetica-Bold", 13)
    c.drawString(x + 9, y, title)


def _draw_header(c: canvas.Canvas, document: ReportDocument, width: float, y: float) -> float:
    header = document.header
    content_width = width - 2 * MARGIN

    logo = _image_from_data_url(header.logo_data_url)
    if logo is not None:
        c.drawImage(logo, MARGIN, y - 36, width=110, height=36, preserveAspectRatio=True, mask="auto")

    c.setFillColor(MUTED)
    c.setFont("Helvetica", 9)
    c.drawRightString(width - MARGIN, y - 12, header.report_date)
    y -= 62

    c.setFillColor(NAVY)
    c.setFont("Helvetica-Bold", 22)
    c.drawString(MARGIN, y, header.title)
    y -= 16
    c.setFillColor(MUTED)
    c.setFont("Helvetica", 11)
    c.drawString(MARGIN, y, header.subtitle)
    y -= 26

    c.setFont("Helvetica", 8)
    c.drawString(MARGIN, y, header.address_label.upper())
    y -= 16
    c.setFillColor(NAVY)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(MARGIN, y, _fit(header.listing_name, "Helvetica-Bold", 14, content_width))
    y -= 12

    image = _image_from_url(header.image_url)
    if image is not None:
        image_height = 150
        c.drawImage(image, MARGIN, y - image_height, width=content_width, height=image_height,
                    preserveAspectRatio=True, anchor="c", mask="auto")
        y -= image_height + 8
    return y - 12


def _draw_summary(c: canvas.Canvas, document: ReportDocument, width: float, y: float) -> float:
    _section_title(c, MARGIN, y, "Executive Summary")
    y -= 14
    gap = 12
    card_width = (width - 2 * MARGIN - gap * (len(document.summary) - 1)) / len(document.summary)
    for index, card in enumerate(document.summary):
        x = MARGIN + index * (card_width + gap)
        _panel(c, x, y, card_width, 52)
        c.setFillColor(MUTED)
        c.setFont("Helvetica", 9)
        c.drawString(x + 12, y - 18, card.label)
        c.setFillColor(NAVY)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(x + 12, y - 40, f"{card.value:,}")
    return y - 52 - 22


def _draw_platforms(c: canvas.Canvas, document: ReportDocument, width: float, y: float) -> float:
    _section_title(c, MARGIN, y, "Platform Performance")
    y -= 14

    if not document.platforms:
        c.setFillColor(MUTED)
        c.setFont("Helvetica-Oblique", 10)
        c.drawCentredString(width / 2, y - 20, document.platform_notice or "")
        return y - 40

    gap = 10
    count = len(document.platforms)
    card_width = (width - 2 * MARGIN - gap * (count - 1)) / count
    card_height = 62 if any(card.clicks is not None for card in document.platforms) else 46
    for index, card in enumerate(document.platforms):
        x = MARGIN + index * (card_width + gap)
        _panel(c, x, y, card_width, card_height)
        c.setFillColor(NAVY)
        c.setFont("Helvetica-Bold", 11)
        c.drawString(x + 10, y - 16, card.name)
        c.setFont("Helvetica", 9)
        c.setFillColor(MUTED)
        c.drawString(x + 10, y - 32, "Views")
        c.setFillColor(NAVY)
        c.drawRightString(x + card_width - 10, y - 32, f"{card.views:,}")
        if card.clicks is not None:
            c.setFillColor(MUTED)
            c.drawString(x + 10, y - 48, card.clicks_label)
            c.setFillColor(NAVY)
            c.drawRightString(x + card_width - 10, y - 48, f"{card.clicks:,}")
    return y - card_height - 22


def _draw_social(c: canvas.Canvas, document: ReportDocument, width: float, y: float) -> float:
    _section_title(c, MARGIN, y, document.social.title)
    y -= 14
    content_width = width - 2 * MARGIN
    posts = document.social.posts
    for index, post in enumerate(posts):
        # Keep clear of the footer; the report is one page
        if y - 34 < FOOTER_TOP:
            c.setFillColor(MUTED)
            c.setFont("Helvetica-Oblique", 9)
            c.drawString(MARGIN, y - 10, f"+ {len(posts) - index} more posts not shown")
            break
        _panel(c, MARGIN, y, content_width, 34)
        c.setFillColor(NAVY)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(MARGIN + 10, y - 14, post.label)
        c.setFillColor(MUTED)
        c.setFont("Helvetica", 8)
        c.drawString(MARGIN + 10, y - 26, _fit(post.url, "Helvetica", 8, content_width - 190))
        c.setFillColor(NAVY)
        c.setFont("Helvetica", 9)
        c.drawRightString(width - MARGIN - 90, y - 20, f"Views: {post.views:,}")
        c.drawRightString(width - MARGIN - 10, y - 20, f"Clicks: {post.clicks:,}")
        y -= 40
    return y - 12


def _draw_footer(c: canvas.Canvas, document: ReportDocument, width: float) -> None:
    footer = document.footer
    y = MARGIN + 44
    c.setStrokeColor(BORDER)
    c.line(MARGIN, y + 12, width - MARGIN, y + 12)

    c.setFillColor(MUTED)
    c.setFont("Helvetica", 8)
    c.drawString(MARGIN, y, f"{footer.generated_label}: {footer.report_date}")
    c.drawCentredString(width / 2, y, footer.brand)
    c.drawRightString(width - MARGIN, y, footer.page_label)

    text = c.beginText(MARGIN, y - 16)
    text.setFont("Helvetica-Oblique", 7)
    line = ""
    for word in document.disclaimer.split():
        candidate = f"{line} {word}".strip()
        if stringWidth(candidate, "Helvetica-Oblique", 7) > width - 2 * MARGIN:
            text.textLine(line)
            line = word
        else:
            line = candidate
    if line:
        text.textLine(line)
    c.drawText(text)


def render_pdf(document: ReportDocument) -> bytes:
    """
    Render the report onto a single LETTER page.

    Raises:
        ReportRenderError: reportlab failed to produce the document
    """
    with log_timing("render_pdf", logger=logger, posts=len(document.social.posts) if document.social else 0):
        try:
            buf = BytesIO()
            width, height = letter
            c = canvas.Canvas(buf, pagesize=letter)
            c.setTitle(f"{document.header.title}: {document.header.listing_name}")

            y = height - MARGIN
            y = _draw_header(c, document, width, y)
            y = _draw_summary(c, document, width, y)
            y = _draw_platforms(c, document, width, y)
            if document.social is not None:
                _draw_social(c, document, width, y)
            _draw_footer(c, document, width)

            c.showPage()
            c.save()
            return buf.getvalue()
        except Exception as e:
            logger.error("PDF rendering failed", exc_info=True, listing_name=document.header.listing_name)
            raise ReportRenderError(f"Failed to generate PDF: {e}")
