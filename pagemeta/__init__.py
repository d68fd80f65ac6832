from .core import crawl
from .errors import NoDataAvailable, PageError, ValidationError
from .fetcher import request, select_transport
from .models import FetchResult
from .page import Page
from .sanitizer import clean_html
from .summarizer import Summarizer

__all__ = [
    "crawl", "request", "select_transport", "clean_html",
    "Page", "FetchResult", "Summarizer", "PageError", "ValidationError", "NoDataAvailable",
]
