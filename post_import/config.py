"""Configuration objects and constants for the importer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger("post_import")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.114 Safari/537.36"
)
DEFAULT_PLACEHOLDER_HERO = "../../assets/blog-placeholder-3.jpg"
DEFAULT_REQUEST_TIMEOUT = 30.0
CONTENT_SUBDIR = Path("src") / "content" / "blog"
ASSETS_SUBDIR = Path("src") / "assets" / "images"

# Relative path from a post in the content tree to the image asset tree.
ASSET_LINK_PREFIX = "../../assets/images"
UPLOADS_FOLDER = "uploads"


@dataclass
class ImportConfig:
    """Locations and network settings shared by the CLI and the server."""

    content_dir: Path
    assets_dir: Path
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    placeholder_hero: str = DEFAULT_PLACEHOLDER_HERO

    @classmethod
    def from_root(cls, root: Path, **overrides) -> "ImportConfig":
        root = Path(root)
        return cls(
            content_dir=root / CONTENT_SUBDIR,
            assets_dir=root / ASSETS_SUBDIR,
            **overrides,
        )

    @property
    def uploads_dir(self) -> Path:
        return self.assets_dir / UPLOADS_FOLDER


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if not value:
        return None
    return Path(value).expanduser()


def load_config(root: Optional[Path] = None) -> ImportConfig:
    """Build a config from a site root, honouring environment overrides."""
    env_root = _env_path("POST_IMPORT_ROOT")
    base = Path(root) if root is not None else (env_root or Path.cwd())
    config = ImportConfig.from_root(base.resolve())

    content_override = _env_path("POST_IMPORT_CONTENT_DIR")
    if content_override:
        logger.debug("POST_IMPORT_CONTENT_DIR override detected at %s", content_override)
        config.content_dir = content_override
    assets_override = _env_path("POST_IMPORT_ASSETS_DIR")
    if assets_override:
        logger.debug("POST_IMPORT_ASSETS_DIR override detected at %s", assets_override)
        config.assets_dir = assets_override

    timeout = os.getenv("POST_IMPORT_TIMEOUT")
    if timeout:
        try:
            config.request_timeout = float(timeout)
        except ValueError:
            logger.warning(
                "POST_IMPORT_TIMEOUT is set to %r which is not a number; using %.1fs",
                timeout,
                config.request_timeout,
            )
    return config
