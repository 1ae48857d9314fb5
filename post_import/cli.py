"""Command-line entry point for importing a web article as a blog post."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import load_config
from .errors import ImportFailure
from .importer import import_article

logger = logging.getLogger("post_import.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _BelowLevel(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def _configure_logging(verbose: bool) -> None:
    """Progress goes to stdout, warnings and errors to stderr."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_BelowLevel(logging.WARNING))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="post-import",
        description="Import a web article into the blog's content tree as Markdown.",
    )
    parser.add_argument("url", help="URL of the article to import")
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Site root containing src/content/blog and src/assets/images (default: current directory)",
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Directory where the Markdown post should be written",
    )
    parser.add_argument(
        "--assets-dir",
        type=Path,
        default=None,
        help="Directory under which per-post image folders are created",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each network request",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    config = load_config(args.root)
    if args.content_dir:
        config.content_dir = args.content_dir.resolve()
    if args.assets_dir:
        config.assets_dir = args.assets_dir.resolve()
    if args.timeout:
        config.request_timeout = args.timeout

    start = time.perf_counter()
    try:
        result = import_article(args.url, config)
    except ImportFailure as exc:
        logger.error("Error: %s", exc)
        return 1
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error importing %s", args.url)
        return 1

    logger.info(
        "Finished in %.2fs: %s (%d/%d images stored locally)",
        time.perf_counter() - start,
        result.output_path,
        result.downloaded_count,
        result.image_count,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
