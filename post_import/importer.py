"""High-level orchestration for importing articles into the content tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import requests

from .config import ASSET_LINK_PREFIX, ImportConfig
from .content import extract_article, parse_document
from .errors import DraftValidationError, FetchError
from .images import download_asset, fetch_and_store
from .markdown import compose_post, convert_html, resolve_placeholders, rewrite_image_targets
from .metadata import DEFAULT_TAG, extract_pub_date, extract_tags, split_tags, today
from .models import ImageReference, ImportResult, PostDraft, PostMetadata, StoredAsset
from .utils import slugify

logger = logging.getLogger("post_import")

EDITOR_IMAGE_PREFIX = "/local-images/"
REQUIRED_DRAFT_FIELDS = ("slug", "content", "title")


def asset_link(slug: str, filename: str) -> str:
    """Path of a stored asset relative to the post that embeds it."""
    return f"{ASSET_LINK_PREFIX}/{slug}/{filename}"


def post_path(config: ImportConfig, slug: str) -> Path:
    return Path(config.content_dir) / f"{slug}.md"


def fetch_page(url: str, config: ImportConfig, session: requests.Session) -> Union[str, bytes]:
    """Retrieve the source page, presenting a desktop browser user agent.

    Without a charset in the Content-Type header the raw bytes are returned
    so the HTML parsers can honour the page's own <meta charset>.
    """
    logger.info("Fetching %s", url)
    try:
        resp = session.get(
            url,
            headers={"User-Agent": config.user_agent},
            timeout=config.request_timeout,
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch {url}: {exc}") from exc
    if "charset=" not in resp.headers.get("Content-Type", "").lower():
        return resp.content
    return resp.text


def _prepare_asset_dir(config: ImportConfig, slug: str) -> Path:
    asset_dir = Path(config.assets_dir) / slug
    if asset_dir.exists():
        logger.debug("Asset folder %s already exists; earlier files are kept", asset_dir)
    asset_dir.mkdir(parents=True, exist_ok=True)
    return asset_dir


def resolve_images(
    references: Iterable[ImageReference],
    slug: str,
    asset_dir: Path,
    config: ImportConfig,
    session: requests.Session,
) -> Tuple[Dict[int, str], Dict[int, StoredAsset]]:
    """Download each referenced image in order and map placeholders to targets.

    Images that cannot be stored keep their original absolute URL. Two
    sources sharing a basename are stored under distinct names.
    """
    targets: Dict[int, str] = {}
    stored: Dict[int, StoredAsset] = {}
    filenames: Set[str] = set()
    for reference in references:
        asset = download_asset(
            reference.original_source,
            asset_dir,
            session=session,
            timeout=config.request_timeout,
            reserved=filenames,
        )
        if asset:
            stored[reference.ordinal_index] = asset
            targets[reference.ordinal_index] = asset_link(slug, asset.filename)
        else:
            targets[reference.ordinal_index] = reference.original_source
    return targets, stored


def write_post(config: ImportConfig, slug: str, metadata: PostMetadata, body: str) -> Path:
    output_path = post_path(config, slug)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(compose_post(metadata, body), encoding="utf-8")
    logger.info("Saved article to %s", output_path)
    return output_path


def import_article(
    source_url: str,
    config: ImportConfig,
    *,
    session: Optional[requests.Session] = None,
) -> ImportResult:
    """Fetch ``source_url`` and write it as a post with localized images."""
    session = session or requests.Session()

    html = fetch_page(source_url, config, session)
    article = extract_article(html, source_url)
    logger.info("Title: %s", article.title)

    document = parse_document(html)
    slug = slugify(article.title)
    tags = extract_tags(document)
    pub_date = extract_pub_date(document)

    markdown, references = convert_html(article.body_html, source_url)
    logger.info("Found %d images. Downloading...", len(references))

    asset_dir = Path(config.assets_dir) / slug
    hero_image = ""
    stored: Dict[int, StoredAsset] = {}
    if references:
        asset_dir = _prepare_asset_dir(config, slug)
        targets, stored = resolve_images(references, slug, asset_dir, config, session)
        markdown = resolve_placeholders(markdown, targets)
        if 0 in stored:
            hero_image = targets[0]

    metadata = PostMetadata(
        title=article.title,
        description=article.excerpt,
        pub_date=pub_date,
        hero_image=hero_image or config.placeholder_hero,
        tags=tags,
    )
    output_path = write_post(config, slug, metadata, markdown)
    if references:
        logger.info("Images saved to %s", asset_dir)

    return ImportResult(
        slug=slug,
        output_path=output_path,
        asset_dir=asset_dir,
        image_count=len(references),
        downloaded_count=len(stored),
        hero_image=metadata.hero_image,
        assets=list(stored.values()),
    )


def draft_from_payload(payload: dict) -> PostDraft:
    """Validate an editor payload and turn it into a ``PostDraft``."""
    missing = [name for name in REQUIRED_DRAFT_FIELDS if not payload.get(name)]
    if missing:
        raise DraftValidationError(missing)

    tags = payload.get("tags") or []
    if not isinstance(tags, (list, tuple)):
        tags = [tags]
    return PostDraft(
        slug=str(payload["slug"]),
        content=str(payload["content"]),
        title=str(payload["title"]),
        description=str(payload.get("description") or ""),
        pub_date=payload.get("pubDate") or None,
        tags=[str(tag) for tag in tags],
        hero_image=payload.get("heroImage") or None,
    )


class _DraftImageLocalizer:
    """Rewrites image targets of an editor draft into asset-tree paths."""

    def __init__(self, slug: str, config: ImportConfig, session: requests.Session) -> None:
        self.slug = slug
        self.config = config
        self.session = session
        self.asset_dir = Path(config.assets_dir) / slug
        self._downloaded: Dict[str, Optional[str]] = {}
        self._filenames: Set[str] = set()

    def __call__(self, target: str) -> Optional[str]:
        if target.startswith(EDITOR_IMAGE_PREFIX):
            return f"{ASSET_LINK_PREFIX}/{target[len(EDITOR_IMAGE_PREFIX):]}"
        if target.startswith(("http://", "https://")):
            return self._download(target)
        return None

    def _download(self, url: str) -> Optional[str]:
        if url not in self._downloaded:
            filename = fetch_and_store(
                url,
                self.asset_dir,
                session=self.session,
                timeout=self.config.request_timeout,
                reserved=self._filenames,
            )
            self._downloaded[url] = asset_link(self.slug, filename) if filename else None
        return self._downloaded[url]

    @property
    def downloaded(self) -> List[str]:
        return [target for target in self._downloaded.values() if target]


def save_draft(
    draft: PostDraft,
    config: ImportConfig,
    *,
    session: Optional[requests.Session] = None,
) -> Path:
    """Write an editor draft as a post, localizing the images it embeds."""
    slug = slugify(draft.slug)
    if slug != draft.slug:
        logger.info("Normalized slug %r to %r", draft.slug, slug)

    localizer = _DraftImageLocalizer(slug, config, session or requests.Session())
    body = rewrite_image_targets(draft.content, localizer)

    hero_image = config.placeholder_hero
    if draft.hero_image:
        hero_image = localizer(draft.hero_image) or draft.hero_image
    if localizer.downloaded:
        logger.info("Stored %d remote image(s) in %s", len(localizer.downloaded), localizer.asset_dir)

    metadata = PostMetadata(
        title=draft.title,
        description=draft.description,
        pub_date=draft.pub_date or today(),
        hero_image=hero_image,
        tags=split_tags(draft.tags) or [DEFAULT_TAG],
    )
    return write_post(config, slug, metadata, body)
