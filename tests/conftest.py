"""
tests/conftest.py
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

import pytest
import requests

from post_import.config import ImportConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeResponse:
    """Just enough of ``requests.Response`` for the importer."""

    def __init__(
        self,
        *,
        content: bytes = b"",
        text: Optional[str] = None,
        status_code: int = 200,
        content_type: str = "text/html; charset=utf-8",
    ):
        self.content = content if text is None else text.encode("utf-8")
        self.text = text if text is not None else content.decode("latin-1")
        self.status_code = status_code
        self.headers = {"Content-Type": content_type} if content_type else {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Serves canned responses by URL and records every request."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout})
        outcome = self.routes.get(url)
        if outcome is None:
            return FakeResponse(status_code=404, content_type="text/plain")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def import_config(tmp_path: Path) -> ImportConfig:
    """Config rooted in a throwaway site tree."""
    return ImportConfig.from_root(tmp_path, request_timeout=5.0)


@pytest.fixture
def png_response() -> FakeResponse:
    return FakeResponse(content=PNG_BYTES, content_type="image/png")


def article_html(
    *,
    title: str = "My First Post",
    head: str = "",
    images: str = '<p><img src="/images/photo.png" alt="A photo"></p>',
) -> str:
    paragraph = (
        "This is a long paragraph of article text that readability should score "
        "highly, with commas, sentences, and enough words to look like real prose."
    )
    return f"""<!doctype html>
<html>
<head><title>{title}</title>{head}</head>
<body>
  <nav><a href="/">Home</a> | <a href="/about">About</a></nav>
  <article>
    <h1>{title}</h1>
    <p>{paragraph}</p>
    {images}
    <p>{paragraph}</p>
    <h2>Details</h2>
    <p>{paragraph}</p>
    <pre><code>print("hello")</code></pre>
    <p>{paragraph}</p>
  </article>
  <footer>Copyright</footer>
</body>
</html>"""
