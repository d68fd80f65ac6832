import pytest
from bs4 import BeautifulSoup

from pagemeta import sanitizer
from pagemeta.sanitizer import clean_html


def wrap(body: str) -> str:
    return f"<!DOCTYPE html><html><head><title>Page title</title></head><body>{body}</body></html>"


ARTICLE = "<p>Real article paragraph content.</p>"


def test_scripts_and_styles_always_removed():
    out = clean_html(wrap("<script>alert('x')</script><style>p { color: red }</style>" + ARTICLE))
    assert "alert" not in out
    assert "<style" not in out
    assert "Real article paragraph content." in out


def test_head_and_doctype_removed():
    out = clean_html(wrap(ARTICLE))
    assert "Page title" not in out
    assert "<!DOCTYPE" not in out


def test_hidden_and_display_none_removed():
    body = '<div hidden>Secret hidden text</div><div style="display: none">Invisible block text</div>' + ARTICLE
    out = clean_html(wrap(body))
    assert "Secret hidden text" not in out
    assert "Invisible block text" not in out


def test_comments_removed():
    out = clean_html(wrap("<!-- internal note -->" + ARTICLE))
    assert "internal note" not in out


def test_boilerplate_tags_removed():
    body = "<nav>Home About Contact</nav><form><label>Search the site</label></form><aside>Side stuff here</aside>"
    out = clean_html(wrap(body + ARTICLE))
    assert "Home About" not in out
    assert "Search the site" not in out
    assert "Side stuff" not in out


def test_boilerplate_ids_and_classes_removed():
    body = (
        '<div id="cookie-banner">We use cookies everywhere</div>'
        '<div class="sidebar">Sidebar content here</div>'
        '<div class="share-buttons">Share this article now</div>'
    )
    out = clean_html(wrap(body + ARTICLE))
    assert "cookies everywhere" not in out
    assert "Sidebar content" not in out
    assert "Share this article" not in out


def test_long_class_dropped_before_class_fragment_rule():
    # the long value mentions "related" but is discarded before fragments are matched
    body = (
        '<div class="a-very-long-related-wrapper">Survives because class dropped first</div>'
        '<div class="related">Related posts list here</div>'
    )
    out = clean_html(wrap(body))
    assert "<div>Survives because class dropped first</div>" in out
    assert "Related posts list" not in out


def test_class_passes_run_in_order():
    assert sanitizer.PASSES.index(sanitizer.shrink_attributes) < sanitizer.PASSES.index(
        sanitizer.remove_class_fragments
    )


def test_long_footer_removed_short_footer_kept():
    out = clean_html(wrap(ARTICLE + "<footer>Copyright 2024 Example</footer>"))
    assert "Copyright 2024 Example" in out

    out = clean_html(wrap(ARTICLE + f"<footer>{'word ' * 300}</footer>"))
    assert "word word" not in out


def test_spans_unwrapped():
    out = clean_html(wrap("<p>Some <span>inline text</span> here</p>"))
    assert "<span" not in out
    assert "Some inline text here" in out


def test_attributes_outside_allow_list_stripped():
    out = clean_html(wrap('<a href="/full" onclick="evil()" data-track="1">Read the full article</a>'))
    assert 'href="/full"' in out
    assert "onclick" not in out
    assert "data-track" not in out


def test_long_class_attribute_dropped():
    body = '<p class="averyveryverylongclassname-xyz">Paragraph text here</p><p class="lead">Lead paragraph text</p>'
    out = clean_html(wrap(body))
    assert "averyveryverylongclassname" not in out
    assert 'class="lead"' in out


def test_data_attribute_dropped():
    soup = BeautifulSoup('<p data="x">Data attr paragraph</p>', "lxml")
    sanitizer.shrink_attributes(soup)
    assert soup.p.get("data") is None


def test_link_dense_block_removed():
    links = "".join(f'<a href="/t/{i}">Topics {i:02d}</a>' for i in range(12))
    out = clean_html(wrap(f"<div>{links}</div>" + ARTICLE))
    assert "Topics 05" not in out
    assert "Real article paragraph content." in out


def test_link_dense_block_with_prose_kept():
    prose = "This paragraph is mostly prose with a single reference to another page in the middle of it all."
    out = clean_html(wrap(f'<div>{prose} <a href="/x">one link</a> and more words to follow.</div>'))
    assert "mostly prose" in out


def test_tiny_leaves_removed_and_longer_text_kept():
    out = clean_html(wrap("<p>Hi!</p><p>Hello</p><div><b>ok</b>Enough text here</div>"))
    assert "Hi!" not in out
    assert "Hello" in out
    assert "<b>" not in out
    assert "Enough text here" in out


def test_serialization_is_compact():
    out = clean_html(wrap("\n\n<div>\n   <p>First paragraph text</p>\n\n   <p>Second paragraph text</p>\n</div>"))
    assert "\n" not in out
    assert "> <" not in out
    assert "<p>First paragraph text</p><p>Second paragraph text</p>" in out


def test_max_bytes_truncates():
    out = clean_html(wrap(ARTICLE * 20), max_bytes=50)
    assert len(out.encode("utf-8")) <= 50


def test_max_bytes_never_splits_characters():
    out = clean_html(wrap("<p>" + "é" * 100 + "</p>"), max_bytes=21)
    out.encode("utf-8")  # still valid text
    assert len(out.encode("utf-8")) <= 21


def test_empty_html_does_not_crash():
    assert clean_html("") == ""


@pytest.mark.parametrize("prune", sanitizer.PASSES)
def test_each_pass_returns_count(prune):
    soup = BeautifulSoup(wrap(ARTICLE), "lxml")
    assert prune(soup) >= 0
