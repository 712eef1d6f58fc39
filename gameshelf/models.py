from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class Strategy(str, Enum):
    DELEGATED = "delegated"
    NATIVE = "native"
    COMPATIBILITY_LAYER = "compatibility-layer"
    DESKTOP_ENTRY = "desktop-entry"
    BEST_EFFORT = "best-effort"


class BinaryKind(str, Enum):
    ELF = "elf"
    PE = "pe"
    UNKNOWN = "unknown"


@dataclass
class Validation:
    valid: bool
    reason: Optional[str] = None    # not-absolute | not-found | not-a-directory | permission-denied | invalid

    def to_dict(self) -> dict:
        d = {"valid": self.valid}
        if self.reason:
            d["reason"] = self.reason
        return d


@dataclass
class GameRecord:
    id: str
    name: str
    path: str                       # absolute path of the main executable
    source_dir_name: str
    added_at: str
    icon_ref: str = ""
    description: str = ""
    last_played: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "iconRef": self.icon_ref,
            "description": self.description,
            "lastPlayed": self.last_played,
            "addedAt": self.added_at,
            "sourceDirectoryName": self.source_dir_name,
        }


@dataclass
class AppManifest:
    app_id: str
    name: str
    install_dir_name: str
    manifest_path: Path
    install_path: Path


@dataclass(frozen=True)
class LaunchResult:
    success: bool
    strategy: Optional[Strategy] = None
    error: Optional[str] = None
    app_id: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> dict:
        d = {"success": self.success,
             "strategy": self.strategy.value if self.strategy else None}
        if self.error is not None:
            d["error"] = self.error
        if self.app_id is not None:
            d["appId"] = self.app_id
            d["name"] = self.name
        return d


@dataclass
class ArtworkMatch:
    display_name: Optional[str] = None
    image_ref: Optional[str] = None


@dataclass
class ScanOutcome:
    item: str
    outcome: str                    # game | skipped | error | invalid-root
    reason: str = ""


@dataclass
class ScanReport:
    root: str
    games: List[GameRecord] = field(default_factory=list)
    outcomes: List[ScanOutcome] = field(default_factory=list)


@dataclass
class CatalogReport:
    games: List[GameRecord] = field(default_factory=list)
    outcomes: List[ScanOutcome] = field(default_factory=list)
