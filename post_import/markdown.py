"""Markdown generation, image placeholder handling and post (de)serialization."""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import html2text
import yaml
from bs4 import BeautifulSoup

from .models import ImageReference, PostMetadata, PostRecord

logger = logging.getLogger("post_import")

PLACEHOLDER_PATTERN = re.compile(r"\./image-placeholder-(\d+)(?=[)\s])")
# Markdown image syntax: ![alt](target) or ![alt](target "title").
MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[(?P<alt>[^\]]*)\]\((?P<target>[^)\s]+)(?P<title>\s+\"[^\"]*\")?\)")
FRONTMATTER_DELIMITER = "---"


def _build_converter() -> html2text.HTML2Text:
    handler = html2text.HTML2Text()
    handler.body_width = 0
    handler.ignore_links = False
    handler.ignore_images = False
    handler.ignore_tables = False
    handler.inline_links = True
    handler.backquote_code_style = True
    handler.mark_code = False
    return handler


def collect_images(soup: BeautifulSoup, page_url: str) -> List[ImageReference]:
    """Swap every ``<img>`` source for a numbered placeholder.

    Sources are resolved against ``page_url`` and recorded in document
    order. Images without a source are dropped; inline ``data:`` images
    are left alone.
    """
    references: List[ImageReference] = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src:
            img.decompose()
            continue
        if src.startswith("data:"):
            continue
        reference = ImageReference(
            original_source=urljoin(page_url, src),
            alt_text=(img.get("alt") or "").strip(),
            ordinal_index=len(references),
        )
        img["src"] = reference.placeholder
        references.append(reference)
    return references


def convert_html(body_html: str, page_url: str) -> Tuple[str, List[ImageReference]]:
    """Convert article HTML into Markdown with deferred image references."""
    soup = BeautifulSoup(body_html, "html.parser")
    references = collect_images(soup, page_url)
    markdown = _build_converter().handle(soup.decode())
    return markdown.strip() + "\n", references


def _splice(text: str, matches, render: Callable[[re.Match], Optional[str]]) -> str:
    """Rebuild ``text`` replacing each match span with ``render(match)``."""
    parts: List[str] = []
    cursor = 0
    for match in matches:
        replacement = render(match)
        if replacement is None:
            continue
        parts.append(text[cursor : match.start()])
        parts.append(replacement)
        cursor = match.end()
    parts.append(text[cursor:])
    return "".join(parts)


def resolve_placeholders(markdown: str, replacements: Dict[int, str]) -> str:
    """Replace each ``./image-placeholder-N`` with ``replacements[N]``."""
    if not replacements:
        return markdown

    def render(match: re.Match) -> Optional[str]:
        return replacements.get(int(match.group(1)))

    return _splice(markdown, PLACEHOLDER_PATTERN.finditer(markdown), render)


def rewrite_image_targets(markdown: str, rewrite: Callable[[str], Optional[str]]) -> str:
    """Rewrite the target of every Markdown image for which ``rewrite`` answers."""

    def render(match: re.Match) -> Optional[str]:
        target = rewrite(match.group("target"))
        if target is None:
            return None
        return f"![{match.group('alt')}]({target}{match.group('title') or ''})"

    return _splice(markdown, MARKDOWN_IMAGE_PATTERN.finditer(markdown), render)


def find_image_targets(markdown: str) -> List[str]:
    return [match.group("target") for match in MARKDOWN_IMAGE_PATTERN.finditer(markdown)]


def _quote(value: str) -> str:
    collapsed = " ".join(value.split())
    return "'" + collapsed.replace("'", "''") + "'"


def compose_frontmatter(metadata: PostMetadata) -> str:
    lines = [
        FRONTMATTER_DELIMITER,
        f"title: {_quote(metadata.title)}",
        f"description: {_quote(metadata.description or '')}",
        f"pubDate: {_quote(metadata.pub_date)}",
        f"heroImage: {_quote(metadata.hero_image)}",
        "tags: " + json.dumps(metadata.tags, ensure_ascii=False, separators=(",", ":")),
        FRONTMATTER_DELIMITER,
    ]
    return "\n".join(lines) + "\n"


def compose_post(metadata: PostMetadata, body: str) -> str:
    """Generate the final post text: frontmatter, blank line, Markdown body."""
    return compose_frontmatter(metadata) + "\n" + body


def parse_post(text: str) -> PostRecord:
    """Read a post written by ``compose_post`` (or by hand) back into a record."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise ValueError("Post does not start with a frontmatter block")

    closing_index = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONTMATTER_DELIMITER:
            closing_index = idx
            break
    if closing_index is None:
        raise ValueError("Frontmatter block is not terminated")

    try:
        data = yaml.safe_load("".join(lines[1:closing_index])) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid frontmatter: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Frontmatter is not a mapping")

    body = "".join(lines[closing_index + 1 :])
    if body.startswith("\n"):
        body = body[1:]

    tags = data.get("tags") or []
    if not isinstance(tags, (list, tuple)):
        tags = [tags]
    metadata = PostMetadata(
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        pub_date=str(data.get("pubDate") or ""),
        hero_image=str(data.get("heroImage") or ""),
        tags=[str(tag) for tag in tags],
    )
    return PostRecord(metadata=metadata, body=body)
