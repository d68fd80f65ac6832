MAX_OVERVIEW_PARAGRAPHS = 3


def to_hash(page) -> dict:
    """Flat record of every derived field plus the raw (unsanitized) body."""
    return {
        "url": page.url,
        "site_name": page.site_name,
        "titles": page.titles,
        "descriptions": page.descriptions,
        "authors": page.authors,
        "type": page.content_type_label,
        "opengraph": page.opengraph,
        "metas": page.meta_tags,
        "headings": page.headings,
        "paragraphs": page.paragraphs,
        "resolved_url": page.resolved_url,
        "feeds": page.feeds,
        "published_at": page.published_at,
        "topics": page.topics,
        "html": page.html,
    }


def overview(page) -> str:
    """
    Line-oriented digest of the page for an LLM prompt.

    The line prefixes and their order are what the summarizer prompt
    expects; keep them stable.
    """
    out = [f"URL: {page.url}"]
    if page.site_name:
        out.append(f"SITE NAME: {page.site_name}")
    out.extend(f"POSSIBLE TITLE: {title}" for title in page.titles)
    out.extend(f"POSSIBLE DESCRIPTION: {description}" for description in page.descriptions)
    out.extend(f"POSSIBLE AUTHOR: {author}" for author in page.authors)
    out.extend(f"POSSIBLE DATE: {date}" for date in page.published_at)
    out.extend(f"HEADING: {heading}" for heading in page.headings)
    for i, paragraph in enumerate(page.paragraphs[:MAX_OVERVIEW_PARAGRAPHS], start=1):
        out.append(f"PARAGRAPH {i}: {paragraph}")
    return "\n".join(out)
