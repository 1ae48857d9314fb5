"""Flask application exposing the editor's admin routes."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.utils import secure_filename

from .config import UPLOADS_FOLDER, ImportConfig, load_config
from .errors import DraftValidationError
from .importer import draft_from_payload, save_draft
from .markdown import parse_post

logger = logging.getLogger("post_import.server")

ASSET_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
PUBLIC_IMAGE_PREFIX = "/local-images"


def asset_content_type(path: Path) -> str:
    return ASSET_CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_asset_path(assets_root: Path, relative: str) -> Optional[Path]:
    """Resolve ``relative`` under ``assets_root``; ``None`` if it escapes the root."""
    root = Path(assets_root).resolve()
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        return None
    return candidate


def _config() -> ImportConfig:
    return current_app.config["IMPORT_CONFIG"]


def save_post():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify(message="Missing required fields"), 400
    try:
        draft = draft_from_payload(payload)
        output_path = save_draft(
            draft,
            _config(),
            session=current_app.config.get("HTTP_SESSION"),
        )
    except DraftValidationError as exc:
        logger.info("Rejected draft: %s", exc)
        return jsonify(message="Missing required fields"), 400
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error saving post")
        return jsonify(message="Internal Server Error"), 500
    return jsonify(message="Saved successfully", path=str(output_path)), 200


def upload_image():
    upload = request.files.get("file") or request.files.get("file[]")
    if upload is None or not upload.filename:
        return jsonify(msg="No file found", code=1), 400

    original_name = upload.filename
    safe_name = secure_filename(original_name) or "upload"
    stored_name = f"{int(time.time() * 1000)}-{safe_name}"
    upload_dir = _config().uploads_dir
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        upload.save(upload_dir / stored_name)
    except OSError as exc:
        logger.exception("Error uploading image")
        return jsonify(msg=f"Server Error: {exc.strerror or exc}", code=1), 500

    logger.info("Stored upload %s as %s", original_name, upload_dir / stored_name)
    return jsonify(
        msg="Success",
        code=0,
        data={
            "errFiles": [],
            "succMap": {
                original_name: f"{PUBLIC_IMAGE_PREFIX}/{UPLOADS_FOLDER}/{stored_name}",
            },
        },
    ), 200


def local_image(asset_path: str):
    path = resolve_asset_path(_config().assets_dir, asset_path)
    if path is None:
        return Response("Forbidden", status=403, mimetype="text/plain")
    if not path.is_file():
        return Response("Not Found", status=404, mimetype="text/plain")
    try:
        data = path.read_bytes()
    except OSError:
        logger.warning("Could not read asset %s", path, exc_info=True)
        return Response("Not Found", status=404, mimetype="text/plain")

    resp = Response(data, status=200, mimetype=asset_content_type(path))
    resp.headers["Cache-Control"] = "public, max-age=3600"
    return resp


def search_index():
    """Summaries of every post, consumed by the client-side fuzzy search."""
    content_dir = Path(_config().content_dir)
    entries = []
    if content_dir.is_dir():
        for post_file in sorted(content_dir.glob("*.md")):
            try:
                record = parse_post(post_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping %s in search index: %s", post_file, exc)
                continue
            entries.append(
                {
                    "slug": post_file.stem,
                    "title": record.metadata.title,
                    "description": record.metadata.description,
                    "pubDate": record.metadata.pub_date,
                    "tags": record.metadata.tags,
                }
            )
    return jsonify(entries)


def create_app(config: Optional[ImportConfig] = None) -> Flask:
    app = Flask(__name__)
    app.config["IMPORT_CONFIG"] = config or load_config()
    app.config["HTTP_SESSION"] = None

    app.add_url_rule("/api/save-post", view_func=save_post, methods=["POST"])
    app.add_url_rule("/api/upload-image", view_func=upload_image, methods=["POST"])
    app.add_url_rule("/api/search.json", view_func=search_index, methods=["GET"])
    app.add_url_rule(
        f"{PUBLIC_IMAGE_PREFIX}/<path:asset_path>",
        view_func=local_image,
        methods=["GET"],
    )
    return app
