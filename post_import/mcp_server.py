"""MCP server exposing the article import as a tool."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .importer import import_article as run_import

logger = logging.getLogger("post_import.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="post-import")


@mcp.tool()
def import_article(url: str) -> str:
    """Import a web article into the blog and report where it was written."""
    result = run_import(url, load_config())
    return (
        f"Saved {result.output_path} "
        f"({result.downloaded_count}/{result.image_count} images stored in {result.asset_dir}; "
        f"heroImage: {result.hero_image})"
    )


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
