import logging
from functools import cached_property
from typing import Optional

from bs4 import BeautifulSoup

from . import assembler, extractor, parser, sanitizer
from .errors import NoDataAvailable
from .fetcher import request
from .models import FetchResult

logger = logging.getLogger(__name__)

MAX_FETCH_ATTEMPTS = 2

# failure text from the rendering proxy when the target needs scripts executed
RENDER_REQUIRED_SIGNAL = "try with render_js"


class Page:
    """
    One fetched url and everything derived from it.

    Derived fields are computed on first access and cached for the life of
    the Page. They read the tree in ``document``, which is never mutated;
    ``clean_html`` works on its own freshly parsed copy of the body.
    """

    def __init__(self, url: str):
        self.url = url
        self.fetch_result: Optional[FetchResult] = None
        self.succeeded: Optional[bool] = None
        self.error_text: Optional[str] = None

    def __repr__(self) -> str:
        return f"Page({self.url!r}, succeeded={self.succeeded!r})"

    # --- fetching ---

    def fetch(self, render_required: bool = False) -> bool:
        """
        Fetch the page, retrying once with script rendering when the transport asks for it.
        Returns True on success; on failure check ``succeeded`` and ``error_text``.
        """
        if self.succeeded:
            return True

        result = None
        for attempt in range(1, MAX_FETCH_ATTEMPTS + 1):
            logger.info("Fetching %s (attempt %d, render_required=%s)", self.url, attempt, render_required)
            result = request(self.url, render_required=render_required)

            if result.success:
                self.fetch_result = result
                self.succeeded = True
                self.error_text = None
                return True

            if result.error_text and RENDER_REQUIRED_SIGNAL in result.error_text:
                logger.info("%s needs script rendering, retrying", self.url)
                render_required = True
                continue

            break

        self.succeeded = False
        self.error_text = result.error_text if result else None
        logger.warning("Failed to fetch %s: %s", self.url, self.error_text)
        return False

    def _require_data(self) -> FetchResult:
        if self.fetch_result is None:
            raise NoDataAvailable(f"No data available for {self.url}")
        return self.fetch_result

    @property
    def html(self) -> str:
        return self._require_data().body

    @property
    def resolved_url(self) -> Optional[str]:
        return self._require_data().resolved_url

    @property
    def final_url(self) -> str:
        return self.resolved_url or self.url

    # --- document loading ---

    @cached_property
    def document(self) -> Optional[BeautifulSoup]:
        result = self._require_data()
        if result.content_type != "html" or not result.body:
            logger.debug("No html document for %s (type=%s)", self.url, result.content_type)
            return None
        return BeautifulSoup(result.body, "lxml")

    # --- derived fields ---

    @cached_property
    def opengraph(self) -> dict:
        return parser.opengraph_from_metadata(self._require_data().metadata)

    @cached_property
    def meta_tags(self) -> dict[str, str]:
        if self.document is None:
            return {}
        return parser.meta_tags(self.document)

    @cached_property
    def titles(self) -> list[str]:
        if self.document is None:
            return []
        return parser.titles(self.document, self.opengraph)

    @cached_property
    def descriptions(self) -> list[str]:
        if self.document is None:
            return []
        return parser.descriptions(self.document, self.opengraph, self.meta_tags)

    @cached_property
    def authors(self) -> list[str]:
        if self.document is None:
            return []
        return parser.authors(self.document, self.opengraph, self.meta_tags)

    @cached_property
    def published_at(self) -> list[str]:
        if self.document is None:
            return []
        return parser.published_at(self.document, self.opengraph, self.meta_tags, self.final_url)

    @cached_property
    def headings(self) -> list[str]:
        if self.document is None:
            return []
        return parser.headings(self.document)

    @cached_property
    def paragraphs(self) -> list[str]:
        if self.document is None:
            return []
        return parser.paragraphs(self.document, self.final_url)

    @cached_property
    def feeds(self) -> list[str]:
        if self.document is None:
            return []
        return parser.feeds(self.document, self.final_url)

    @cached_property
    def site_name(self) -> Optional[str]:
        if self.document is None:
            return None
        return parser.site_name(self.opengraph, self.meta_tags)

    @cached_property
    def content_type_label(self) -> Optional[str]:
        if self.document is None:
            return "unknown"
        return parser.content_type_label(self.opengraph, self.meta_tags)

    @cached_property
    def topics(self) -> list[str]:
        if self.document is None:
            return []
        corpus = extractor.build_corpus(self.titles, self.descriptions, self.headings, self.paragraphs)
        return extractor.extract_topics(corpus)

    @cached_property
    def summarizer(self):
        """LLM summary client bound to this page. Needs OPENAI_API_KEY."""
        # summarizer imports Page, so it can't be imported at module level
        from .summarizer import Summarizer

        return Summarizer(self)

    # --- sanitized html ---

    def clean_document(self) -> Optional[BeautifulSoup]:
        if self.document is None:
            return None
        return sanitizer.clean_document(self.html)

    def clean_html(self, max_bytes: Optional[int] = None) -> str:
        if self.document is None:
            return ""
        return sanitizer.clean_html(self.html, max_bytes=max_bytes)

    # --- output ---

    def to_hash(self) -> dict:
        return assembler.to_hash(self)

    def overview(self) -> str:
        return assembler.overview(self)
