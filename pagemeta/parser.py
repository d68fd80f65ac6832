"""
Field resolvers over a parsed document.

Every resolver here is a pure function of the BeautifulSoup tree plus any
fields already resolved for the page (opengraph, meta tags, urls). Each one
collects candidates in a fixed priority order and hands them to
``_ordered_unique``; none of them mutate the tree.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from nltk.tokenize import RegexpTokenizer

MAX_HEADINGS = 10
MAX_PARAGRAPHS = 10
MAX_PARAGRAPH_CHARS = 1024
MIN_HEADING_WORDS = 3

# opengraph keys tried in order for the publish date, first present wins
_OG_PUBLISHED_KEYS = ("article:published_time", "og:pubdate", "og:article:published_time")

# date embedded in a url path, e.g. /2013/06/10/
_URL_DATE_RE = re.compile(r"\d{4}/\d{2}/\d{2}")

_FEED_HREF_RE = re.compile(r"rss|feed")

# code hosts whose paragraph text lives inside .entry-content
_CODE_HOST_RE = re.compile(r"^https?://(www\.)?(github\.com|gitlab\.com|bitbucket\.org)/", re.IGNORECASE)

_WORD_TOKENIZER = RegexpTokenizer(r"\w+")


def _ordered_unique(values: Iterable[Optional[str]]) -> list[str]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    seen = set()
    out = []
    for value in values:
        if value is None:
            continue
        value = str(value).strip()
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def _text(tag) -> Optional[str]:
    return tag.get_text() if tag is not None else None


def _attr(tag, name: str) -> Optional[str]:
    if tag is None:
        return None
    value = tag.get(name)
    # multi-valued attributes (rel, class) come back as lists
    if isinstance(value, list):
        return " ".join(value)
    return value


def opengraph_from_metadata(metadata: Optional[dict]) -> dict:
    """First opengraph block of the proxy's metadata hint, or {}."""
    blocks = (metadata or {}).get("opengraph")
    if not blocks:
        return {}
    first = blocks[0] if isinstance(blocks, list) else blocks
    return dict(first) if isinstance(first, dict) else {}


def meta_tags(soup: BeautifulSoup) -> dict[str, str]:
    """Map every <meta> name (or property) to its content; later tags win."""
    metas = {}
    for meta in soup.find_all("meta"):
        key = meta.get("name") or meta.get("property")
        content = meta.get("content")
        if key is None or content is None:
            continue
        metas[key] = content
    return metas


def titles(soup: BeautifulSoup, og: dict) -> list[str]:
    return _ordered_unique([og.get("og:title"), _text(soup.find("title"))])


def descriptions(soup: BeautifulSoup, og: dict, metas: dict) -> list[str]:
    return _ordered_unique([
        og.get("og:description"),
        metas.get("og:description"),
        _attr(soup.select_one("meta[name='description']"), "content"),
    ])


def authors(soup: BeautifulSoup, og: dict, metas: dict) -> list[str]:
    candidates = [
        og.get("article:author"),
        metas.get("author"),
        _text(soup.select_one(".p-author")),
        _attr(soup.select_one("meta[name='citation_author']"), "content"),
    ]
    candidates.extend(a.get_text() for a in soup.select("a[rel='author']"))
    return _ordered_unique(candidates)


def published_at(soup: BeautifulSoup, og: dict, metas: dict, final_url: Optional[str]) -> list[str]:
    og_date = next((og[key] for key in _OG_PUBLISHED_KEYS if og.get(key) is not None), None)
    url_date = None
    if final_url:
        match = _URL_DATE_RE.search(final_url)
        url_date = match.group(0) if match else None

    return _ordered_unique([
        og_date,
        metas.get("article:published_time"),
        url_date,
        _text(soup.select_one("[class*='date'], [id*='date'], time[datetime]")),
        _attr(soup.select_one("time[itemprop='datePublished']"), "datetime"),
    ])


def headings(soup: BeautifulSoup) -> list[str]:
    """h1-h3 text in document order; headings under three words are noise."""
    texts = [h.get_text() for h in soup.find_all(["h1", "h2", "h3"])]
    texts = [t for t in texts if len(_WORD_TOKENIZER.tokenize(t)) >= MIN_HEADING_WORDS]
    return _ordered_unique(texts)[:MAX_HEADINGS]


def paragraphs(soup: BeautifulSoup, url: str) -> list[str]:
    root = soup
    if _CODE_HOST_RE.match(url or ""):
        root = soup.select_one(".entry-content") or soup

    texts = [p.get_text() for p in root.find_all("p")]
    texts = [t for t in texts if len(t.strip()) <= MAX_PARAGRAPH_CHARS]
    return _ordered_unique(texts)[:MAX_PARAGRAPHS]


def feeds(soup: BeautifulSoup, final_url: str) -> list[str]:
    """RSS/Atom links plus the first feed-looking anchor, as absolute urls."""
    anchor_feed = next(
        (a["href"] for a in soup.find_all("a", href=True) if _FEED_HREF_RE.search(a["href"])),
        None,
    )
    hrefs = [
        _attr(soup.select_one("link[type='application/rss+xml']"), "href"),
        _attr(soup.select_one("link[type='application/atom+xml']"), "href"),
        anchor_feed,
    ]
    return _ordered_unique(urljoin(final_url, href.strip()) for href in hrefs if href and href.strip())


def site_name(og: dict, metas: dict) -> Optional[str]:
    for source in (og, metas):
        name = str(source.get("og:site_name") or "").strip()
        if name:
            return name
    return None


def content_type_label(og: dict, metas: dict) -> Optional[str]:
    return metas.get("og:type") or og.get("og:type") or None
