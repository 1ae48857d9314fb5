"""Data models used throughout the import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class ArticleDraft:
    """Readable article content isolated from a fetched page."""

    title: str
    body_html: str
    excerpt: str = ""


@dataclass
class ImageReference:
    """Image discovered while converting the article body."""

    original_source: str
    alt_text: str
    ordinal_index: int

    @property
    def placeholder(self) -> str:
        return f"./image-placeholder-{self.ordinal_index}"


@dataclass
class StoredAsset:
    """Image bytes persisted under the per-article asset folder."""

    filename: str
    folder: str
    size: int


@dataclass
class PostMetadata:
    """Frontmatter fields of a post, in the order they are written."""

    title: str
    description: str
    pub_date: str
    hero_image: str
    tags: List[str] = field(default_factory=list)


@dataclass
class PostRecord:
    """A post as stored on disk: frontmatter plus Markdown body."""

    metadata: PostMetadata
    body: str


@dataclass
class PostDraft:
    """Pre-assembled post submitted by the editor."""

    slug: str
    content: str
    title: str
    description: str = ""
    pub_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    hero_image: Optional[str] = None


@dataclass
class ImportResult:
    """Summary of a finished import."""

    slug: str
    output_path: Path
    asset_dir: Path
    image_count: int
    downloaded_count: int
    hero_image: str
    assets: List[StoredAsset] = field(default_factory=list)
