"""
Boilerplate removal for fetched HTML.

``clean_document`` parses its own tree from the raw html and runs the pruning
passes below in a fixed order. Later passes rely on what earlier ones have
already removed (e.g. long class attributes are dropped before the
class-substring rule runs). The tree used for field extraction is never
touched.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString
from bs4.element import PreformattedString

logger = logging.getLogger(__name__)

# --- heuristic tables ---

# tags that almost never carry readable content
BOILERPLATE_TAGS = [
    "style", "link", "script", "aside", "button", "svg", "label", "nav",
    "textarea", "noscript", "iframe", "form", "input", "img", "image",
    "select", "option", "picture", "figure", "figcaption", "menu",
]

BOILERPLATE_IDS = ["header", "footer", "site-header", "site-footer", "cookie-banner", "outdated"]

BOILERPLATE_CLASSES = ["message-bar", "tag", "adwrap", "sidebar"]

# substring match against the whole class attribute
BOILERPLATE_CLASS_FRAGMENTS = ["related", "cookie", "consent", "sticky", "share", "sr-only"]

ALLOWED_ATTRIBUTES = {"href", "rel", "src", "alt", "title", "class", "id", "name", "type"}

EMPTY_CHECK_TAGS = ["div", "li", "span", "p"]
LINK_DENSITY_TAGS = ["div", "article", "aside", "p"]

MAX_FOOTER_CHARS = 1000
MAX_CLASS_CHARS = 20

# link-farm detection: blocks with at least this much text...
LINK_DENSITY_MIN_TEXT = 100
# ...and more than this many anchors, and more than one anchor per 10 chars
LINK_DENSITY_MIN_ANCHORS = 4

# residual leaf elements with this many alphanumerics or fewer are dropped
MIN_LEAF_ALNUM = 4

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def _remove(nodes) -> int:
    # extract() rather than decompose(): nodes may sit inside an already-removed parent
    count = 0
    for node in list(nodes):
        node.extract()
        count += 1
    return count


def _class_value(tag) -> str:
    value = tag.get("class")
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _comments(soup: BeautifulSoup):
    return soup.find_all(string=lambda s: isinstance(s, Comment))


def _text_nodes(soup: BeautifulSoup):
    # plain text only: comments, doctypes and cdata subclass PreformattedString
    return [
        s for s in soup.find_all(string=True)
        if isinstance(s, NavigableString) and not isinstance(s, PreformattedString)
    ]


def remove_scripts(soup: BeautifulSoup) -> int:
    return _remove(soup.find_all(["script", "style"]))


def remove_hidden(soup: BeautifulSoup) -> int:
    return _remove(soup.select("[hidden]"))


def remove_display_none(soup: BeautifulSoup) -> int:
    return _remove(soup.select("[style*='display: none']"))


def remove_comments(soup: BeautifulSoup) -> int:
    return _remove(_comments(soup))


def remove_empty_blocks(soup: BeautifulSoup) -> int:
    return _remove(el for el in soup.find_all(EMPTY_CHECK_TAGS) if not el.get_text().strip())


def remove_boilerplate_tags(soup: BeautifulSoup) -> int:
    return _remove(soup.find_all(BOILERPLATE_TAGS))


def remove_long_footers(soup: BeautifulSoup) -> int:
    # short footers are usually a copyright line worth keeping
    return _remove(el for el in soup.find_all("footer") if len(el.get_text()) > MAX_FOOTER_CHARS)


def remove_boilerplate_ids(soup: BeautifulSoup) -> int:
    return _remove(soup.find_all(id=BOILERPLATE_IDS))


def remove_boilerplate_classes(soup: BeautifulSoup) -> int:
    return _remove(soup.select(", ".join("." + name for name in BOILERPLATE_CLASSES)))


def shrink_attributes(soup: BeautifulSoup) -> int:
    """Drop long class attributes and any `data` attribute."""
    count = 0
    for el in soup.find_all(True):
        if len(_class_value(el)) > MAX_CLASS_CHARS:
            del el["class"]
            count += 1
        if el.attrs.pop("data", None) is not None:
            count += 1
    return count


def remove_class_fragments(soup: BeautifulSoup) -> int:
    return _remove(
        el for el in soup.find_all(True)
        if any(fragment in _class_value(el) for fragment in BOILERPLATE_CLASS_FRAGMENTS)
    )


def remove_head(soup: BeautifulSoup) -> int:
    return _remove(soup.find_all("head"))


def unwrap_spans(soup: BeautifulSoup) -> int:
    spans = soup.find_all("span")
    for el in spans:
        if el.parent is not None:
            el.replace_with(el.get_text())
    return len(spans)


def remove_link_dense_blocks(soup: BeautifulSoup) -> int:
    def is_link_farm(el) -> bool:
        text_length = len(el.get_text())
        if text_length < LINK_DENSITY_MIN_TEXT:
            return False
        a_count = len(el.find_all("a"))
        return a_count > LINK_DENSITY_MIN_ANCHORS and a_count > text_length // 10

    return _remove(el for el in soup.find_all(LINK_DENSITY_TAGS) if is_link_farm(el))


def remove_blank_text(soup: BeautifulSoup) -> int:
    return _remove(s for s in _text_nodes(soup) if not s.strip())


def strip_attributes(soup: BeautifulSoup) -> int:
    count = 0
    for el in soup.find_all(True):
        dropped = [name for name in el.attrs if name not in ALLOWED_ATTRIBUTES]
        for name in dropped:
            del el[name]
        count += len(dropped)
    return count


def remove_doctypes(soup: BeautifulSoup) -> int:
    return _remove(
        s for s in soup.find_all(string=True)
        if isinstance(s, Doctype) or (isinstance(s, Comment) and s.strip().startswith("<!DOCTYPE"))
    )


def remove_tiny_leaves(soup: BeautifulSoup) -> int:
    # checked in document order, so a parent is judged before its children go
    return _remove(
        el for el in soup.find_all(True)
        if el.find(True) is None and len(_NON_ALNUM_RE.sub("", el.get_text())) <= MIN_LEAF_ALNUM
    )


PASSES = [
    remove_scripts,
    remove_hidden,
    remove_display_none,
    remove_comments,
    remove_empty_blocks,
    remove_boilerplate_tags,
    remove_long_footers,
    remove_boilerplate_ids,
    remove_boilerplate_classes,
    shrink_attributes,
    remove_class_fragments,
    remove_head,
    unwrap_spans,
    remove_link_dense_blocks,
    remove_blank_text,
    strip_attributes,
    remove_doctypes,
    remove_tiny_leaves,
]


def clean_document(html: str) -> BeautifulSoup:
    """Parse html into a fresh tree and run every pruning pass over it."""
    soup = BeautifulSoup(html or "", "lxml")
    for prune in PASSES:
        changed = prune(soup)
        logger.debug("%s touched %d nodes", prune.__name__, changed)
    return soup


def serialize(soup: BeautifulSoup, max_bytes: Optional[int] = None) -> str:
    """Render a pruned tree as compact html, optionally capped to max_bytes of utf-8."""
    out = str(soup)
    out = re.sub(r"\s+", " ", out)
    out = re.sub(r"\n+", "\n", out)
    out = re.sub(r">\s+<", "><", out)
    out = out.replace("<!DOCTYPE html>", "")
    if max_bytes is not None:
        out = out.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    return out


def clean_html(html: str, max_bytes: Optional[int] = None) -> str:
    return serialize(clean_document(html), max_bytes=max_bytes)
