"""
Optional enrichment of scanned games.

Local sources (a `game.json` sidecar, description text files, cover images
next to the executable) are always consulted. A remote artwork lookup can be
plugged in; its answers are cached per game name for the enricher's lifetime.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote

import requests
from loguru import logger

from .models import ArtworkMatch, GameRecord
from .utils import pick_best_image

METAFILE = "game.json"
DESCRIPTION_FILES = ("description.txt", "about.txt", "readme.txt")
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp"}
DEFAULT_TARGET_AR = 0.75
MAX_DESCRIPTION = 200

STEAMGRIDDB_API_URL = "https://www.steamgriddb.com/api/v2"


class ArtworkLookup(Protocol):
    def lookup(self, name: str) -> Optional[ArtworkMatch]: ...


class SteamGridLookup:
    """Cover art lookup against SteamGridDB, by game name."""

    def __init__(self, api_key: str, *, session: Optional[requests.Session] = None,
                 timeout: float = 15, base_url: str = STEAMGRIDDB_API_URL):
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str) -> list:
        res = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
        res.raise_for_status()
        return res.json().get("data") or []

    def lookup(self, name: str) -> Optional[ArtworkMatch]:
        found = self._get(f"/search/autocomplete/{quote(name, safe='')}")
        if not found:
            return None
        best = found[0]
        grids = self._get(f"/grids/game/{best['id']}?dimensions=600x900")
        return ArtworkMatch(
            display_name=best.get("name") or None,
            image_ref=grids[0].get("url") if grids else None,
        )


def truncate_description(text: str) -> str:
    text = text.strip()
    if len(text) > MAX_DESCRIPTION:
        text = text[:MAX_DESCRIPTION - 3].rstrip() + "..."
    return text


def read_description(game_dir: Path) -> str:
    """First non-empty line of the first description sidecar, truncated."""
    try:
        by_lower = {p.name.lower(): p for p in game_dir.iterdir() if p.is_file()}
    except OSError:
        return ""
    for fname in DESCRIPTION_FILES:
        p = by_lower.get(fname)
        if p is None:
            continue
        try:
            text = p.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.debug("Cannot read {}: {}", p, e)
            continue
        for line in text.splitlines():
            line = line.strip()
            if line:
                return truncate_description(line)
    return ""


def load_sidecar(game_dir: Path) -> dict:
    p = game_dir / METAFILE
    try:
        data = json.loads(p.read_text("utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable {}: {}", p, e)
        return {}
    return data if isinstance(data, dict) else {}


def detect_images(game_dir: Path) -> List[str]:
    try:
        items = [p.name for p in game_dir.iterdir()
                 if p.is_file() and p.suffix.lower() in IMAGE_EXTS]
    except OSError:
        return []
    return sorted(items, key=lambda n: n.lower())


class MetadataEnricher:
    def __init__(self, lookup: Optional[ArtworkLookup] = None, *,
                 target_ar: float = DEFAULT_TARGET_AR):
        self.lookup = lookup
        self.target_ar = target_ar
        self._cache: Dict[str, Optional[ArtworkMatch]] = {}

    def remote(self, name: str) -> Optional[ArtworkMatch]:
        if self.lookup is None:
            return None
        if name in self._cache:
            return self._cache[name]
        try:
            match = self.lookup.lookup(name)
        except Exception as e:
            # not cached, so a later build retries
            logger.warning("Artwork lookup for {!r} failed: {}", name, e)
            return None
        self._cache[name] = match
        return match

    def enrich(self, record: GameRecord, game_dir: Optional[Path] = None) -> GameRecord:
        game_dir = Path(game_dir) if game_dir is not None else Path(record.path).parent
        meta = load_sidecar(game_dir)

        name = str(meta.get("title") or "").strip()
        description = truncate_description(str(meta.get("description") or "")) or read_description(game_dir)

        icon = ""
        cover = str(meta.get("cover_image") or "")
        if cover and (game_dir / cover).is_file():
            icon = str(game_dir / cover)
        else:
            chosen = pick_best_image(game_dir, detect_images(game_dir), self.target_ar)
            if chosen:
                icon = str(game_dir / chosen)

        record.description = description
        record.icon_ref = icon
        if name:
            record.name = name
            if icon:
                return record

        match = self.remote(record.name)
        if match:
            if not name and match.display_name:
                record.name = match.display_name
            if not icon and match.image_ref:
                record.icon_ref = match.image_ref
        return record
