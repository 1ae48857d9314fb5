"""Image downloading and local storage."""

from __future__ import annotations

import logging
import os
import random
import time
from pathlib import Path, PurePosixPath
from typing import Optional, Set
from urllib.parse import urlparse

import requests
from filetype import guess

from .config import DEFAULT_REQUEST_TIMEOUT
from .models import StoredAsset
from .utils import sanitize_filename

logger = logging.getLogger("post_import")

DEFAULT_EXTENSION = "jpg"
MAX_SOURCE_FILENAME_CHARS = 50
# Checked in order against the declared Content-Type.
CONTENT_TYPE_EXTENSIONS = (
    ("png", "png"),
    ("gif", "gif"),
    ("webp", "webp"),
    ("jpeg", "jpg"),
    ("svg", "svg"),
)


def infer_extension(content_type: Optional[str]) -> str:
    """Map a declared Content-Type to a file extension, defaulting to jpg."""
    if not content_type:
        return DEFAULT_EXTENSION
    lowered = content_type.lower()
    for marker, extension in CONTENT_TYPE_EXTENSIONS:
        if marker in lowered:
            return extension
    return DEFAULT_EXTENSION


def looks_like_image(content_type: Optional[str], data: bytes) -> bool:
    """Reject payloads that are clearly not images, such as HTML error pages."""
    kind = guess(data)
    if kind is not None:
        return kind.mime.startswith("image/")
    declared = (content_type or "").split(";")[0].strip().lower()
    return declared not in {"text/html", "application/xhtml+xml"}


def build_filename(source_url: str, extension: str) -> str:
    """Derive a safe local filename for an image URL."""
    filename = PurePosixPath(urlparse(source_url).path).name
    if (
        not filename
        or len(filename) > MAX_SOURCE_FILENAME_CHARS
        or "." not in filename
    ):
        stamp = int(time.time() * 1000)
        filename = f"image-{stamp}-{random.randrange(1000)}.{extension}"

    filename = sanitize_filename(filename)
    if not os.path.splitext(filename)[1]:
        filename = f"{filename}.{extension}"
    return filename


def claim_filename(filename: str, reserved: Set[str]) -> str:
    """Return ``filename``, suffixed with ``-N`` if ``reserved`` already holds it."""
    stem, suffix = os.path.splitext(filename)
    candidate = filename
    counter = 1
    while candidate in reserved:
        candidate = f"{stem}-{counter}{suffix}"
        counter += 1
    reserved.add(candidate)
    return candidate


def download_asset(
    source_url: str,
    destination: Path,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    reserved: Optional[Set[str]] = None,
) -> Optional[StoredAsset]:
    """Download one image into ``destination``.

    Failures are logged and reported as ``None`` so that a single broken
    image never aborts the surrounding import. Filenames already in
    ``reserved`` are taken by an earlier image of the same run and get a
    numeric suffix instead.
    """
    http = session or requests
    try:
        resp = http.get(source_url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to download image %s: %s", source_url, exc)
        return None
    except ValueError as exc:
        logger.warning("Failed to download image %s: invalid URL (%s)", source_url, exc)
        return None

    content_type = resp.headers.get("Content-Type", "")
    data = resp.content
    if not looks_like_image(content_type, data):
        logger.warning(
            "Skipping %s: response is not an image (Content-Type=%s)",
            source_url,
            content_type,
        )
        return None

    destination = Path(destination)
    filename = build_filename(source_url, infer_extension(content_type))
    if reserved is not None:
        filename = claim_filename(filename, reserved)
    target = destination / filename
    try:
        destination.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        logger.warning("Failed to write image %s: %s", target, exc)
        return None

    logger.debug("Stored %s (%d bytes) as %s", source_url, len(data), target)
    return StoredAsset(filename=filename, folder=destination.name, size=len(data))


def fetch_and_store(
    source_url: str,
    destination: Path,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    reserved: Optional[Set[str]] = None,
) -> Optional[str]:
    """Download one image and return the stored filename, or ``None``."""
    asset = download_asset(
        source_url, destination, session=session, timeout=timeout, reserved=reserved
    )
    return asset.filename if asset else None
