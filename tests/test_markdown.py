"""
tests/test_markdown.py
"""
from __future__ import annotations

import pytest

from post_import.markdown import (
    compose_post,
    convert_html,
    find_image_targets,
    parse_post,
    resolve_placeholders,
    rewrite_image_targets,
)
from post_import.models import PostMetadata

PAGE_URL = "https://example.com/blog/post"


def test_convert_uses_atx_headings_and_fenced_code():
    html = "<h2>Section</h2><p>Text</p><pre><code>x = 1\ny = 2</code></pre>"
    markdown, references = convert_html(html, PAGE_URL)

    assert "## Section" in markdown
    assert "```" in markdown
    assert "x = 1" in markdown
    assert references == []


def test_convert_defers_images_to_placeholders():
    html = (
        '<p>Intro</p>'
        '<img src="/img/a.png" alt="First">'
        '<p><img src="https://cdn.example.com/b.jpg"></p>'
        '<img alt="no source">'
        '<img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=" alt="inline">'
    )
    markdown, references = convert_html(html, PAGE_URL)

    assert [ref.original_source for ref in references] == [
        "https://example.com/img/a.png",
        "https://cdn.example.com/b.jpg",
    ]
    assert [ref.ordinal_index for ref in references] == [0, 1]
    assert references[0].alt_text == "First"
    assert "![First](./image-placeholder-0)" in markdown
    assert "./image-placeholder-1" in markdown
    assert "no source" not in markdown
    assert "https://example.com/img/a.png" not in markdown


def test_resolve_placeholders_splices_each_token_once():
    markdown = (
        "![a](./image-placeholder-1)\n"
        "![b](./image-placeholder-10)\n"
        "![c](./image-placeholder-0)\n"
    )
    resolved = resolve_placeholders(
        markdown,
        {0: "zero.png", 1: "one.png", 10: "https://example.com/ten.png"},
    )
    assert resolved == (
        "![a](one.png)\n"
        "![b](https://example.com/ten.png)\n"
        "![c](zero.png)\n"
    )
    assert "image-placeholder" not in resolved


def test_rewrite_image_targets_only_touches_answered_targets():
    markdown = '![x](https://a.example/x.png "Title") and ![y](keep.png) [link](https://a.example)'
    rewritten = rewrite_image_targets(
        markdown,
        lambda target: "local/x.png" if target.startswith("https://") else None,
    )
    assert rewritten == '![x](local/x.png "Title") and ![y](keep.png) [link](https://a.example)'
    assert find_image_targets(rewritten) == ["local/x.png", "keep.png"]


@pytest.fixture
def metadata() -> PostMetadata:
    return PostMetadata(
        title="It's a \"quoted\" title",
        description="Line one\nline two with 'quotes'",
        pub_date="2024-05-01",
        hero_image="../../assets/images/its-a-quoted-title/photo.png",
        tags=["python", "Go", "日本語"],
    )


def test_compose_post_field_order(metadata):
    text = compose_post(metadata, "Body text\n")
    lines = text.splitlines()

    assert lines[0] == "---"
    assert [line.split(":", 1)[0] for line in lines[1:6]] == [
        "title",
        "description",
        "pubDate",
        "heroImage",
        "tags",
    ]
    assert lines[1] == "title: 'It''s a \"quoted\" title'"
    assert lines[2] == "description: 'Line one line two with ''quotes'''"
    assert lines[5] == 'tags: ["python","Go","日本語"]'
    assert lines[6] == "---"
    assert lines[7] == ""
    assert text.endswith("Body text\n")


def test_post_round_trip(metadata):
    record = parse_post(compose_post(metadata, "# Heading\n\nBody\n"))

    assert record.metadata.title == metadata.title
    assert record.metadata.description == "Line one line two with 'quotes'"
    assert record.metadata.pub_date == metadata.pub_date
    assert record.metadata.hero_image == metadata.hero_image
    assert record.metadata.tags == metadata.tags
    assert record.body == "# Heading\n\nBody\n"


@pytest.mark.parametrize(
    "text",
    ["no frontmatter here", "---\ntitle: 'open'\n", "---\n- just\n- a list\n---\n"],
)
def test_parse_post_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_post(text)


def test_parse_post_wraps_scalar_tags():
    record = parse_post("---\ntitle: 'Hand written'\ntags: 2024\n---\n\nBody\n")
    assert record.metadata.tags == ["2024"]
    assert record.body == "Body\n"
