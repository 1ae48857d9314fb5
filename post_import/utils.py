"""Utility helpers for slugs and filesystem-safe names."""

from __future__ import annotations

import re

SLUG_STRIP_PATTERN = re.compile(r"[^\w\s-]", re.ASCII)
SLUG_SPACE_PATTERN = re.compile(r"\s+")
FILENAME_PATTERN = re.compile(r"[^A-Za-z0-9._-]")


def slugify(value: str, fallback: str = "untitled") -> str:
    """Derive the post slug, which is also the asset folder name."""
    normalized = SLUG_STRIP_PATTERN.sub("", value.lower())
    normalized = SLUG_SPACE_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def sanitize_filename(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with an underscore."""
    return FILENAME_PATTERN.sub("_", name)
