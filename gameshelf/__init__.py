import os
from pathlib import Path
from typing import Optional

from flask import Flask

from .catalog import GameCatalog
from .routes import bp as routes_bp

BIND = os.environ.get("BIND", "127.0.0.1")
PORT = int(os.environ.get("PORT", "5000"))
LOG_DIR = os.environ.get("GAMESHELF_LOG_DIR")
STEAMGRIDDB_API_KEY = os.environ.get("STEAMGRIDDB_API_KEY")

def default_settings_file() -> Path:
    env = os.environ.get("GAMESHELF_CONFIG")
    if env:
        return Path(env)
    return Path.home() / ".config" / "gameshelf" / "config.json"

def create_app(settings_file=None, catalog: Optional[GameCatalog] = None) -> Flask:
    settings_file = Path(settings_file) if settings_file else default_settings_file()
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET", "dev-" + os.urandom(8).hex())
    app.config["APP_TITLE"] = "Game Shelf"
    app.config["SETTINGS_FILE"] = str(settings_file)
    app.config["ALLOWED_IMG_EXT"] = {".png", ".jpg", ".jpeg", ".webp"}

    app.extensions["gameshelf"] = catalog or GameCatalog(settings_file, api_key=STEAMGRIDDB_API_KEY)
    app.register_blueprint(routes_bp)
    return app
