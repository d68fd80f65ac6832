import logging
import os
import re
from typing import Optional, Protocol
from urllib.parse import urlparse

import requests

from .errors import ValidationError
from .models import FetchResult

logger = logging.getLogger(__name__)

# realistic browser UA, avoids most trivial bot blocks
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))  # seconds
MAX_CONTENT_BYTES = 5 * 1024 * 1024  # 5 MB ceiling to avoid runaway pages
MAX_REDIRECTS = 3

# status code reported when the transport itself blew up (DNS, TLS, timeout...)
TRANSPORT_FAILURE_CODE = 999

PROXY_ENDPOINT = "https://app.scrapingbee.com/api/v1/"
PROXY_API_KEY_ENV = "SCRAPINGBEE_API_KEY"
PROXY_RESPONSE_KEYS = ("headers", "type", "cost", "initial-status-code", "resolved-url", "metadata", "body")
SCREENSHOT_WINDOW = {"window_width": 1680, "window_height": 1050}

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")


class Transport(Protocol):
    name: str

    def get(self, url: str, render_required: bool = False, screenshot: bool = False) -> FetchResult:
        ...


def _validate_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise ValidationError("URL is empty")
    parsed = urlparse(url)
    if not _SCHEME_RE.match(parsed.scheme or "") or not parsed.netloc or re.search(r"\s", url):
        raise ValidationError(f"URL is not valid: {url}")
    return url


def _normalize(result: FetchResult) -> FetchResult:
    """Lower-case header names and derive the content type label when missing."""
    result.headers = {str(k).lower(): v for k, v in (result.headers or {}).items()}
    if not result.content_type:
        raw_type = result.headers.get("content-type")
        if raw_type:
            raw_type = raw_type.split(";")[0].strip().lower()
            result.content_type = "html" if raw_type.startswith("text/html") else raw_type
    return result


def _read_capped(response: requests.Response) -> str:
    """Read a streamed body, stopping once MAX_CONTENT_BYTES have arrived."""
    chunks = []
    received = 0
    for chunk in response.iter_content(chunk_size=64 * 1024):
        chunks.append(chunk)
        received += len(chunk)
        if received >= MAX_CONTENT_BYTES:
            logger.warning("Body of %s exceeds %d bytes, truncating", response.url, MAX_CONTENT_BYTES)
            break
    raw = b"".join(chunks)[:MAX_CONTENT_BYTES]
    # a cut through a multi-byte character is dropped rather than garbled
    return raw.decode(response.encoding or "utf-8", errors="ignore")


class DirectTransport:
    """Plain GET against the target. Cannot render scripts, so render_required is ignored."""

    name = "direct"

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.max_redirects = MAX_REDIRECTS

    def get(self, url: str, render_required: bool = False, screenshot: bool = False) -> FetchResult:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        response = self.session.get(
            url, headers=headers, timeout=REQUEST_TIMEOUT, allow_redirects=True, stream=True,
        )
        try:
            body = _read_capped(response)
        finally:
            response.close()

        return FetchResult(
            status_code=response.status_code,
            success=response.status_code == 200,
            body=body,
            resolved_url=response.url,
            headers=dict(response.headers),
            transport=self.name,
            error_text=None if response.status_code == 200 else f"HTTP {response.status_code} from {response.url}",
        )


class RenderingProxyTransport:
    """Fetch through the ScrapingBee API, which can execute page scripts before returning HTML."""

    name = "rendering_proxy"

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.api_key = api_key or os.getenv(PROXY_API_KEY_ENV)
        if not self.api_key:
            raise ValidationError("No rendering proxy API key")
        self.session = session or requests.Session()

    def build_params(self, url: str, render_required: bool = False, screenshot: bool = False) -> dict:
        params = {
            "api_key": self.api_key,
            "url": url,                     # requests url-encodes query values
            "return_page_source": "true",
            "json_response": "true",
            "render_js": "true" if render_required else "false",
            "timeout": REQUEST_TIMEOUT * 1000,
        }
        if screenshot:
            params["screenshot"] = "true"
            params.update(SCREENSHOT_WINDOW)
        return params

    def get(self, url: str, render_required: bool = False, screenshot: bool = False) -> FetchResult:
        params = self.build_params(url, render_required=render_required, screenshot=screenshot)
        # the proxy enforces its own timeout; leave headroom for it to answer
        response = self.session.get(PROXY_ENDPOINT, params=params, timeout=REQUEST_TIMEOUT + 5)
        body = response.text

        if response.status_code != 200 or not body.startswith("{"):
            return FetchResult.failure(response.status_code, body, transport=self.name)

        payload = response.json()
        data = {k: payload[k] for k in PROXY_RESPONSE_KEYS if k in payload}
        return FetchResult(
            status_code=response.status_code,
            success=True,
            body=data.get("body") or "",
            content_type=data.get("type"),
            resolved_url=data.get("resolved-url"),
            headers=data.get("headers") or {},
            metadata=data.get("metadata"),
            initial_status_code=data.get("initial-status-code"),
            cost=data.get("cost"),
            transport=self.name,
        )


def select_transport() -> Transport:
    """Rendering proxy when a credential is configured, direct GET otherwise."""
    api_key = os.getenv(PROXY_API_KEY_ENV)
    if api_key:
        return RenderingProxyTransport(api_key=api_key)
    return DirectTransport()


def request(
    url: str,
    render_required: bool = False,
    screenshot: bool = False,
    transport: Optional[Transport] = None,
) -> FetchResult:
    """
    Fetch a single URL and return a normalized FetchResult.

    Raises ValidationError for an empty/invalid URL or a missing proxy key.
    Every other failure comes back as FetchResult(success=False); transport
    exceptions never escape this function.
    """
    url = _validate_url(url)
    transport = transport or select_transport()

    try:
        result = transport.get(url, render_required=render_required, screenshot=screenshot)
    except Exception as exc:
        logger.error("Transport %s failed for %s: %s", transport.name, url, exc)
        return FetchResult.failure(TRANSPORT_FAILURE_CODE, str(exc), transport=transport.name)

    logger.debug("Transport %s fetched %s -> %d", transport.name, url, result.status_code)
    return _normalize(result)
