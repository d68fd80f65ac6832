from unittest.mock import patch

import pytest

from pagemeta.models import FetchResult
from pagemeta.page import Page


def _make_page(html, url="https://example.com/a", resolved_url=None, content_type="html", metadata=None):
    """A Page that has been 'fetched' without touching the network."""
    result = FetchResult(
        status_code=200,
        success=True,
        body=html,
        content_type=content_type,
        resolved_url=resolved_url or url,
        metadata=metadata,
        transport="direct",
    )
    page = Page(url)
    with patch("pagemeta.page.request", return_value=result):
        assert page.fetch() is True
    return page


@pytest.fixture
def make_page():
    return _make_page
