from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger

from .launch import LaunchDispatcher
from .metadata import MetadataEnricher, SteamGridLookup
from .models import CatalogReport, GameRecord, LaunchResult, Validation
from .scanning import scan_directory, build_timestamp
from .settings import load_settings, last_played_for, record_last_played
from .steam import OwnershipResolver
from .utils import validate_directory

MAX_WORKERS = 4

class GameCatalog:
    """The three operations the web layer needs: list, launch, validate."""

    def __init__(self, settings_file: Path, *,
                 enricher: Optional[MetadataEnricher] = None,
                 dispatcher: Optional[LaunchDispatcher] = None,
                 api_key: Optional[str] = None):
        self.settings_file = Path(settings_file)
        settings = load_settings(self.settings_file)
        if enricher is None:
            key = api_key or settings.get("steamgriddb_api_key")
            enricher = MetadataEnricher(SteamGridLookup(key) if key else None)
        self.enricher = enricher
        self.dispatcher = dispatcher or LaunchDispatcher(
            OwnershipResolver(), compat_runner=settings["compat_runner"])

    def settings(self) -> dict:
        return load_settings(self.settings_file)

    def build(self, directories: Optional[Iterable[str]] = None) -> CatalogReport:
        settings = self.settings()
        dirs = list(directories) if directories is not None else settings["directories"]
        build_ts = build_timestamp()
        # one id set per build: same-named folders in different roots get distinct ids
        taken: set = set()

        out = CatalogReport()
        for d in dirs:
            r = scan_directory(d, build_ts=build_ts, taken_ids=taken)
            out.games.extend(r.games)
            out.outcomes.extend(r.outcomes)

        with ThreadPoolExecutor(max_workers=MAX_WORKERS) as pool:
            list(pool.map(self._enrich_one, out.games))

        for g in out.games:
            g.last_played = last_played_for(settings, g.path)
        logger.info("Total games found: {}", len(out.games))
        return out

    def _enrich_one(self, record: GameRecord) -> None:
        try:
            self.enricher.enrich(record)
        except Exception as e:
            logger.warning("Enrichment failed for {}: {}", record.path, e)

    def list_games(self, directories: Optional[Iterable[str]] = None) -> List[GameRecord]:
        return self.build(directories).games

    def launch(self, target_path: str) -> LaunchResult:
        if not os.path.isabs(target_path):
            return LaunchResult(success=False, error="Path must be absolute")
        result = self.dispatcher.launch(target_path)
        if result.success:
            try:
                record_last_played(self.settings_file, target_path)
            except OSError as e:
                logger.warning("Cannot record last played for {}: {}", target_path, e)
        return result

    def validate_directory(self, path) -> Validation:
        return validate_directory(path)
