from __future__ import annotations
import io
from html import escape
from pathlib import Path
from flask import Blueprint, current_app, request, send_file, abort, jsonify
from loguru import logger

from .catalog import GameCatalog
from .settings import update_settings
from .utils import is_within

bp = Blueprint("gameshelf", __name__)

def _catalog() -> GameCatalog:
    return current_app.extensions["gameshelf"]

def _public(settings: dict) -> dict:
    out = dict(settings)
    if out.get("steamgriddb_api_key"):
        out["steamgriddb_api_key"] = "********"
    return out

def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

@bp.get("/api/games")
def games():
    report = _catalog().build()
    return jsonify([g.to_dict() for g in report.games])

@bp.post("/api/launch")
def launch():
    path = _body().get("path")
    if not path or not isinstance(path, str):
        return jsonify({"success": False, "error": "Path is required"}), 400
    result = _catalog().launch(path)
    return jsonify(result.to_dict()), (200 if result.success else 500)

@bp.post("/api/validate-directory")
def validate_directory():
    path = _body().get("path")
    if not path:
        return jsonify({"valid": False, "reason": "Path is required"}), 400
    return jsonify(_catalog().validate_directory(path).to_dict())

@bp.get("/api/config")
def get_config():
    return jsonify(_public(_catalog().settings()))

@bp.post("/api/config")
def post_config():
    changes = _body()
    if changes.get("steamgriddb_api_key") == "********":
        changes.pop("steamgriddb_api_key")
    try:
        merged = update_settings(Path(current_app.config["SETTINGS_FILE"]), changes)
    except OSError as e:
        logger.error("Failed to save settings: {}", e)
        return jsonify({"error": "Failed to save config", "details": str(e)}), 500
    return jsonify({"success": True, "config": _public(merged)})

@bp.get("/api/cover")
def cover():
    raw = request.args.get("path", "")
    title = request.args.get("title", "")
    roots = _catalog().settings()["directories"]
    if not raw or not any(is_within(raw, r) for r in roots):
        abort(404)
    p = Path(raw)
    if p.suffix.lower() in current_app.config["ALLOWED_IMG_EXT"] and p.is_file():
        return send_file(p)
    svg = f"""
    <svg xmlns="http://www.w3.org/2000/svg" width="600" height="800">
      <rect width="100%" height="100%" fill="#1f2630"/>
      <text x="50%" y="50%" fill="#e0e6ee" font-size="28" text-anchor="middle" dominant-baseline="middle">
        {escape(title[:32])}
      </text>
    </svg>
    """
    return send_file(io.BytesIO(svg.encode("utf-8")), mimetype="image/svg+xml")

@bp.get("/favicon.ico")
def favicon():
    return ("", 204)
