"""Print-optimized HTML rendering of a ReportDocument with Jinja2."""

from functools import lru_cache
from typing import Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from listing_traffic.services.report_document import ReportDocument
from listing_traffic.services.report_metrics import ReportConfig
from listing_traffic.utils.errors import ReportRenderError
from listing_traffic.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

PRINT_TEMPLATE = "print_report.html"


def format_thousands(value: Optional[int]) -> str:
    """1234567 -> '1,234,567'"""
    if value is None:
        return ""
    return f"{value:,}"


@lru_cache(maxsize=None)
def get_template_env(templates_dir: Optional[str] = None) -> Environment:
    env = Environment(
        loader=FileSystemLoader(templates_dir or ReportConfig.TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["thousands"] = format_thousands
    return env


def render_print_html(document: ReportDocument) -> str:
    """
    Render the report as a static page for browser print-to-PDF.

    Raises:
        ReportRenderError: Template missing or failed to render
    """
    try:
        template = get_template_env().get_template(PRINT_TEMPLATE)
        return template.render(doc=document)
    except TemplateError as e:
        logger.error("Print report rendering failed", exc_info=True, listing_name=document.header.listing_name)
        raise ReportRenderError(f"Failed to render print report: {e}")
