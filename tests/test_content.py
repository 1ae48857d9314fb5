"""
tests/test_content.py
"""
from __future__ import annotations

import pytest

from conftest import article_html
from post_import.content import extract_article
from post_import.errors import ExtractionError


def test_extract_article_isolates_body():
    html = article_html(
        head='<meta name="description" content="A short summary of the post.">'
    )
    draft = extract_article(html, "https://example.com/blog/first")

    assert draft.title == "My First Post"
    assert draft.excerpt == "A short summary of the post."
    assert "readability should score" in draft.body_html
    assert "Copyright" not in draft.body_html
    # relative image sources are made absolute against the page
    assert "https://example.com/images/photo.png" in draft.body_html


def test_excerpt_falls_back_to_first_paragraph():
    draft = extract_article(article_html(), "https://example.com/blog/first")
    assert draft.excerpt.startswith("This is a long paragraph of article text")
    assert "\n" not in draft.excerpt


@pytest.mark.parametrize("html", ["", "   ", "<html><body></body></html>"])
def test_extract_article_without_content_fails(html):
    with pytest.raises(ExtractionError):
        extract_article(html, "https://example.com/empty")


def test_extract_article_decodes_bytes_with_meta_charset():
    html = article_html(title="Café déjà vu", head='<meta charset="utf-8">')
    draft = extract_article(html.encode("utf-8"), "https://example.com/blog/cafe")

    assert draft.title == "Café déjà vu"
    assert "Ã" not in draft.body_html
