"""Tag and publish-date derivation from page metadata."""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

logger = logging.getLogger("post_import")

DEFAULT_TAG = "imported"
TAG_SELECTOR = 'meta[property="article:tag"], meta[name="keywords"]'
DATE_SELECTOR = (
    'meta[property="article:published_time"], meta[name="date"], meta[name="pubdate"]'
)


def split_tags(values) -> List[str]:
    """Split comma-bearing values, trim, and de-duplicate in first-seen order."""
    tags: List[str] = []
    for value in values:
        if not value:
            continue
        for part in value.split(","):
            tag = part.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tags


def extract_tags(doc: BeautifulSoup) -> List[str]:
    tags = split_tags(meta.get("content") for meta in doc.select(TAG_SELECTOR))
    return tags or [DEFAULT_TAG]


def today() -> str:
    return dt.date.today().isoformat()


def normalize_date(value: str) -> str:
    """Return the ``YYYY-MM-DD`` date of ``value``, in UTC when it carries an offset."""
    try:
        parsed = date_parser.isoparse(value)
    except ValueError:
        parsed = date_parser.parse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.date().isoformat()


def extract_pub_date(doc: BeautifulSoup, default: Optional[str] = None) -> str:
    """Publish date from document metadata, falling back to today."""
    fallback = default or today()
    meta = doc.select_one(DATE_SELECTOR)
    if meta is None:
        return fallback
    content = (meta.get("content") or "").strip()
    if not content:
        return fallback
    try:
        return normalize_date(content)
    except (ValueError, OverflowError) as exc:
        logger.warning("Could not parse date %r: %s", content, exc)
        return fallback
