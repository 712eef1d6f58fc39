"""
Steam library discovery and ownership lookup.

Steam keeps one `appmanifest_<appid>.acf` per installed title in each
library's `steamapps` directory; the game itself lives under
`steamapps/common/<installdir>`.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from loguru import logger

from .models import AppManifest
from .utils import is_windows, is_macos, canonical, is_within

MANIFEST_RE = re.compile(r"^appmanifest_\d+\.acf$")
_KV = r'"{key}"\s+"([^"]*)"'
_LIBRARY_PATH_RE = re.compile(r'"path"\s+"([^"]+)"', re.IGNORECASE)

def _field(text: str, key: str) -> Optional[str]:
    m = re.search(_KV.format(key=key), text, re.IGNORECASE)
    return m.group(1) if m else None

def default_library_candidates() -> List[Path]:
    home = Path.home()
    if is_windows():
        roots = [os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"),
                 os.environ.get("ProgramFiles", r"C:\Program Files")]
        return [Path(r) / "Steam" for r in roots]
    if is_macos():
        return [home / "Library" / "Application Support" / "Steam"]
    return [
        home / ".steam" / "steam",
        home / ".steam" / "root",
        home / ".local" / "share" / "Steam",
        # Flatpak / Snap
        home / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",
        home / "snap" / "steam" / "common" / ".local" / "share" / "Steam",
    ]

def _is_library(path: Path) -> bool:
    steamapps = path / "steamapps"
    return steamapps.is_dir() and os.access(steamapps, os.R_OK | os.X_OK)

def _extra_libraries(library: Path) -> List[Path]:
    vdf = library / "steamapps" / "libraryfolders.vdf"
    try:
        text = vdf.read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Cannot read {}: {}", vdf, e)
        return []
    return [Path(p.replace("\\\\", "\\")) for p in _LIBRARY_PATH_RE.findall(text)]

def locate_libraries(candidates: Optional[Iterable[Path]] = None) -> List[Path]:
    """Existing Steam library roots, in search order, without duplicates."""
    search = list(candidates) if candidates is not None else default_library_candidates()
    found: List[Path] = []
    seen = set()

    def _add(p: Path) -> bool:
        try:
            if not _is_library(p):
                return False
            key = canonical(p)
        except OSError:
            return False
        if key in seen:
            return False
        seen.add(key)
        found.append(p)
        return True

    for cand in search:
        if _add(Path(cand)):
            for extra in _extra_libraries(Path(cand)):
                _add(extra)
    return found

def manifests_in(library: Path) -> List[Path]:
    steamapps = Path(library) / "steamapps"
    try:
        names = [p.name for p in steamapps.iterdir() if p.is_file()]
    except OSError as e:
        logger.debug("Cannot list {}: {}", steamapps, e)
        return []
    return [steamapps / n for n in sorted(names) if MANIFEST_RE.match(n)]

def parse_manifest(manifest_path: Path, library: Optional[Path] = None) -> Optional[AppManifest]:
    manifest_path = Path(manifest_path)
    library = Path(library) if library is not None else manifest_path.parent.parent
    try:
        text = manifest_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Cannot read manifest {}: {}", manifest_path, e)
        return None

    app_id = _field(text, "appid")
    name = _field(text, "name")
    install_dir = _field(text, "installdir")
    if not app_id or not name or not install_dir:
        logger.warning("Discarding incomplete manifest {}", manifest_path)
        return None
    return AppManifest(
        app_id=app_id,
        name=name,
        install_dir_name=install_dir,
        manifest_path=manifest_path,
        install_path=library / "steamapps" / "common" / install_dir,
    )

class OwnershipResolver:
    """Maps a filesystem path to the Steam app whose install folder contains it."""

    def __init__(self, locate: Callable[[], List[Path]] = locate_libraries):
        self._locate = locate

    def resolve(self, candidate) -> Optional[AppManifest]:
        try:
            for library in self._locate():
                for manifest_path in manifests_in(library):
                    app = parse_manifest(manifest_path, library)
                    if app and is_within(candidate, app.install_path):
                        logger.debug("{} belongs to Steam app {} ({})", candidate, app.app_id, app.name)
                        return app
        except Exception as e:
            logger.warning("Ownership lookup failed for {}: {}", candidate, e)
        return None
