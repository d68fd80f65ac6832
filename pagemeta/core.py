import logging

from .page import Page

logger = logging.getLogger(__name__)


def crawl(url: str, render_required: bool = False) -> Page:
    """
    Top-level entry point. Builds a Page for the url and fetches it.
    Fetch failures never raise; check page.succeeded / page.error_text.
    An empty or malformed url raises ValidationError before any request is made.
    """
    page = Page(url)
    if page.fetch(render_required=render_required):
        logger.info("Fetched %s via %s", url, page.fetch_result.transport)
    return page
