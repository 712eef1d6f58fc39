import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set

from loguru import logger

from .executables import looks_executable
from .models import GameRecord, ScanOutcome, ScanReport
from .utils import validate_directory, load_ignore_patterns, is_dir_ignored

IGNORE_FILE = ".gameshelfignore"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NON_WORD = re.compile(r"[\W_]+")

def build_timestamp() -> int:
    return int(time.time() * 1000)

def _squash(s: str) -> str:
    return _NON_WORD.sub("", s.casefold())

def slug(s: str) -> str:
    return _NON_ALNUM.sub("-", s.lower()).strip("-")

def game_id_for(dir_name: str, build_ts: int, taken: Optional[Set[str]] = None) -> str:
    """`<slug>-<build_ts>`; a numeric suffix keeps it unique within one build."""
    base = f"{slug(dir_name) or 'game'}-{build_ts}"
    gid = base
    if taken is not None:
        n = 2
        while gid in taken:
            gid = f"{base}-{n}"
            n += 1
        taken.add(gid)
    return gid

def format_game_name(dir_name: str) -> str:
    spaced = re.sub(r"[_-]", " ", dir_name)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced).strip()

def _stem(filename: str) -> str:
    return filename.split(".")[0]

def _has_affinity(filename: str, dir_key: str) -> bool:
    stem = _squash(_stem(filename))
    if not stem or not dir_key:
        return False
    return stem.startswith(dir_key) or dir_key in stem or stem in dir_key

def select_main_executable(files: List[str], dir_name: str) -> Optional[str]:
    """Pick the executable whose name matches its folder, else any executable.

    Candidates are taken in case-insensitive lexical order so the choice does
    not depend on how the filesystem enumerates entries.
    """
    ordered = sorted(files, key=lambda n: (n.lower(), n))
    execs = [f for f in ordered if looks_executable(f)]
    dir_key = _squash(dir_name)
    for f in execs:
        if _has_affinity(f, dir_key):
            return f
    return execs[0] if execs else None

def list_files(game_dir: Path) -> List[str]:
    return [p.name for p in game_dir.iterdir() if p.is_file()]

def scan_directory(root, *, build_ts: Optional[int] = None,
                   taken_ids: Optional[Set[str]] = None,
                   ignore_filename: str = IGNORE_FILE) -> ScanReport:
    """Scan one root, one level deep. Problems are recorded, never raised."""
    report = ScanReport(root=str(root))
    check = validate_directory(root)
    if not check.valid:
        logger.warning("Skipping scan root {}: {}", root, check.reason)
        report.outcomes.append(ScanOutcome(str(root), "invalid-root", check.reason or ""))
        return report

    root_path = Path(root)
    build_ts = build_ts if build_ts is not None else build_timestamp()
    taken_ids = taken_ids if taken_ids is not None else set()
    added_at = datetime.now(timezone.utc).isoformat()
    patterns = load_ignore_patterns(root_path, ignore_filename)

    try:
        entries = sorted(root_path.iterdir(), key=lambda p: (p.name.lower(), p.name))
    except OSError as e:
        logger.warning("Cannot list scan root {}: {}", root, e)
        report.outcomes.append(ScanOutcome(str(root), "error", str(e)))
        return report

    for entry in entries:
        if not entry.is_dir():
            continue
        if is_dir_ignored(root_path, entry, patterns):
            report.outcomes.append(ScanOutcome(str(entry), "skipped", "ignored"))
            continue
        try:
            files = list_files(entry)
        except OSError as e:
            logger.warning("Cannot read game directory {}: {}", entry, e)
            report.outcomes.append(ScanOutcome(str(entry), "error", str(e)))
            continue

        main_exec = select_main_executable(files, entry.name)
        if not main_exec:
            report.outcomes.append(ScanOutcome(str(entry), "skipped", "no-executable"))
            continue

        report.games.append(GameRecord(
            id=game_id_for(entry.name, build_ts, taken_ids),
            name=format_game_name(entry.name),
            path=str(entry / main_exec),
            source_dir_name=entry.name,
            added_at=added_at,
        ))
        report.outcomes.append(ScanOutcome(str(entry), "game"))

    logger.info("Found {} games in {}", len(report.games), root)
    return report
