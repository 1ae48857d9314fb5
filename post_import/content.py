"""HTML extraction of the readable article body."""

from __future__ import annotations

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from .errors import ExtractionError
from .models import ArticleDraft

logger = logging.getLogger("post_import")

FALLBACK_TITLE = "Untitled"


def parse_document(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse the full page so metadata can be read from its ``<head>``."""
    return BeautifulSoup(html, "html.parser")


def _clean_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove tags that never belong in an imported post."""
    for tag in soup(["script", "style", "noscript", "form"]):
        tag.decompose()
    return soup


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def _build_excerpt(page: BeautifulSoup, summary: BeautifulSoup) -> str:
    excerpt = (
        _meta_content(page, property="og:description")
        or _meta_content(page, name="description")
    )
    if not excerpt:
        for paragraph in summary.find_all("p"):
            text = paragraph.get_text(" ", strip=True)
            if text:
                excerpt = text
                break
    return " ".join((excerpt or "").split())


def extract_article(html: Union[str, bytes], page_url: str) -> ArticleDraft:
    """Isolate the main article of ``html`` and return it as a draft.

    ``html`` may be undecoded bytes, in which case the page's declared
    charset is honoured. Relative links inside the article are made absolute
    against ``page_url``. Raises ``ExtractionError`` when nothing readable is found.
    """
    if not html or not html.strip():
        raise ExtractionError(f"Empty document returned by {page_url}")

    document = Document(html, url=page_url)
    try:
        summary_html = document.summary(html_partial=True)
        title = document.short_title()
    except Unparseable as exc:
        raise ExtractionError(f"Could not parse article content: {exc}") from exc

    summary = _clean_content(BeautifulSoup(summary_html, "html.parser"))
    if not summary.get_text(strip=True) and not summary.find("img"):
        raise ExtractionError(f"Could not parse article content from {page_url}")

    page = parse_document(html)
    if not title and page.title and page.title.string:
        title = page.title.string.strip()
    if not title:
        logger.warning("No title found for %s; using %r", page_url, FALLBACK_TITLE)
        title = FALLBACK_TITLE

    return ArticleDraft(
        title=title.strip(),
        body_html=summary.decode(),
        excerpt=_build_excerpt(page, summary),
    )
