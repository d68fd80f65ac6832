import logging
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import app
from api.middleware import RateLimitMiddleware
from pagemeta.errors import ValidationError
from pagemeta.models import FetchResult
from pagemeta.page import Page

client = TestClient(app)

HTML = """
<html>
<head>
    <title>Example Article Title</title>
    <meta name="description" content="An example article about web crawling.">
    <meta property="og:type" content="article">
</head>
<body>
    <h1>Example Article Title</h1>
    <script>tracking()</script>
    <p>This is the body text of the article about web crawling.</p>
</body>
</html>
"""


def fetched_page(make_page):
    return make_page(HTML, url="https://example.com/article")


# --- /health ---

def test_health_direct_transport(monkeypatch):
    monkeypatch.delenv("SCRAPINGBEE_API_KEY", raising=False)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "transport": "direct"}


def test_health_proxy_transport(monkeypatch):
    monkeypatch.setenv("SCRAPINGBEE_API_KEY", "secret")
    assert client.get("/health").json()["transport"] == "rendering_proxy"


# --- /page ---

def test_page_success(make_page):
    with patch("api.routes.crawl", return_value=fetched_page(make_page)) as mock_crawl:
        response = client.post("/page", json={"url": "https://example.com/article"})

    assert response.status_code == 200
    data = response.json()
    assert data["titles"] == ["Example Article Title"]
    assert data["descriptions"] == ["An example article about web crawling."]
    assert data["type"] == "article"
    assert data["overview"].startswith("URL: https://example.com/article\nPOSSIBLE TITLE: Example Article Title")
    assert data["clean_html"] is None
    assert "html" not in data
    mock_crawl.assert_called_once_with("https://example.com/article", False)


def test_page_with_clean_html(make_page):
    with patch("api.routes.crawl", return_value=fetched_page(make_page)):
        response = client.post("/page", json={"url": "https://example.com/article", "include_clean_html": True})

    clean = response.json()["clean_html"]
    assert "body text of the article" in clean
    assert "tracking" not in clean


def test_render_js_passed_through(make_page):
    with patch("api.routes.crawl", return_value=fetched_page(make_page)) as mock_crawl:
        client.post("/page", json={"url": "https://example.com/article", "render_js": True})
    mock_crawl.assert_called_once_with("https://example.com/article", True)


def test_invalid_url_rejected():
    response = client.post("/page", json={"url": "not-a-url"})
    assert response.status_code == 422


def test_missing_url_rejected():
    response = client.post("/page", json={})
    assert response.status_code == 422


def test_validation_error_returns_422():
    with patch("api.routes.crawl", side_effect=ValidationError("No rendering proxy API key")):
        response = client.post("/page", json={"url": "https://example.com/article"})
    assert response.status_code == 422
    assert "API key" in response.json()["detail"]


def test_fetch_failure_returns_502():
    page = Page("https://dead.example.com")
    with patch("pagemeta.page.request", return_value=FetchResult.failure(999, "Connection timeout")):
        page.fetch()

    with patch("api.routes.crawl", return_value=page):
        response = client.post("/page", json={"url": "https://dead.example.com"})

    assert response.status_code == 502
    assert "Connection timeout" in response.json()["detail"]


# --- middleware ---

def test_rate_limit_returns_429():
    limited = FastAPI()
    limited.add_middleware(RateLimitMiddleware, requests_per_window=2, window_seconds=60)

    @limited.get("/ping")
    async def ping():
        return {"ok": True}

    @limited.get("/health")
    async def health():
        return {"ok": True}

    limited_client = TestClient(limited)
    assert limited_client.get("/ping").status_code == 200
    assert limited_client.get("/ping").status_code == 200
    response = limited_client.get("/ping")
    assert response.status_code == 429
    assert "Retry-After" in response.headers
    # health checks are never limited
    assert limited_client.get("/health").status_code == 200


def test_unhandled_error_returns_500_and_is_logged(caplog):
    failing_client = TestClient(app, raise_server_exceptions=False)
    with patch("api.routes.crawl", side_effect=RuntimeError("parser exploded")):
        with caplog.at_level(logging.ERROR, logger="api.main"):
            response = failing_client.post("/page", json={"url": "https://example.com/article"})

    assert response.status_code == 500
    assert response.json() == {"detail": "An unexpected error occurred.", "code": "internal_error"}
    assert any(
        r.name == "api.main" and "POST /page" in r.getMessage() and "parser exploded" in r.getMessage()
        for r in caplog.records
    )
