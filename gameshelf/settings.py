import copy
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from .utils import canonical

CONFIG_VERSION = 1

DEFAULTS: Dict = {
    "version": CONFIG_VERSION,
    "directories": [
        str(Path.home() / "Games"),
        str(Path.home() / ".local" / "share" / "Steam" / "steamapps" / "common"),
    ],
    "compat_runner": "wine",
    "steamgriddb_api_key": "",
    "last_played": {},          # canonical executable path -> ISO timestamp
}

def _defaults() -> Dict:
    return copy.deepcopy(DEFAULTS)

def _sanitize(data: Dict) -> Dict:
    dirs = data.get("directories")
    if not isinstance(dirs, list) or not all(isinstance(d, str) for d in dirs):
        data["directories"] = _defaults()["directories"]
    if not isinstance(data.get("last_played"), dict):
        data["last_played"] = {}
    if not isinstance(data.get("compat_runner"), str) or not data["compat_runner"].strip():
        data["compat_runner"] = DEFAULTS["compat_runner"]
    return data

def _write(settings_file: Path, settings: Dict) -> None:
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(settings, indent=2) + "\n", encoding="utf-8")

def read_settings_file(settings_file: Path) -> Dict:
    """Parse the stored settings as-is. Raises OSError or ValueError."""
    data = json.loads(Path(settings_file).read_text("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("settings root must be an object")
    return data

def _merged(data: Dict) -> Dict:
    merged = _sanitize({**_defaults(), **data})
    merged["version"] = CONFIG_VERSION
    return merged

def load_settings(settings_file: Path) -> Dict:
    """Read settings, filling in defaults. A missing file is created."""
    settings_file = Path(settings_file)
    if not settings_file.exists():
        logger.info("Settings file {} not found, creating defaults", settings_file)
        settings = _defaults()
        try:
            _write(settings_file, settings)
        except OSError as e:
            logger.warning("Cannot create settings file {}: {}", settings_file, e)
        return settings
    try:
        data = read_settings_file(settings_file)
    except (OSError, ValueError) as e:
        # keep the broken file for the user to inspect
        logger.warning("Cannot read settings {}: {}; using defaults", settings_file, e)
        return _defaults()

    merged = _merged(data)
    if merged != data:
        logger.info("Upgrading settings file {}", settings_file)
        try:
            _write(settings_file, merged)
        except OSError as e:
            logger.warning("Cannot upgrade settings file {}: {}", settings_file, e)
    return merged

def save_settings(settings_file: Path, settings: Dict) -> None:
    _write(Path(settings_file), settings)

def update_settings(settings_file: Path, changes: Dict) -> Dict:
    """Merge a partial update into the stored settings and persist it."""
    merged = load_settings(settings_file)
    merged.update({k: v for k, v in changes.items() if k in DEFAULTS})
    merged = _merged(merged)
    save_settings(settings_file, merged)
    logger.info("Settings saved to {}", settings_file)
    return merged

def record_last_played(settings_file: Path, exe_path: str,
                       when: Optional[datetime] = None) -> Optional[str]:
    """Store the launch time for `exe_path`.

    Returns the stored timestamp, or None when the settings file exists but
    cannot be parsed; such a file is left untouched.
    """
    settings_file = Path(settings_file)
    stamp = (when or datetime.now(timezone.utc)).isoformat()
    if settings_file.exists():
        try:
            settings = _merged(read_settings_file(settings_file))
        except (OSError, ValueError) as e:
            logger.warning("Not recording last played for {}: cannot read {}: {}",
                           exe_path, settings_file, e)
            return None
    else:
        settings = load_settings(settings_file)
    settings["last_played"][str(canonical(exe_path))] = stamp
    save_settings(settings_file, settings)
    return stamp

def last_played_for(settings: Dict, exe_path: str) -> Optional[str]:
    return settings.get("last_played", {}).get(str(canonical(exe_path)))
