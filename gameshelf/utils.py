import os
import stat
import sys
import fnmatch
from pathlib import Path
from typing import Optional, List, Union

from loguru import logger
from PIL import Image

from .models import Validation

PathLike = Union[str, os.PathLike]

def is_windows() -> bool:
    return os.name == "nt"

def is_macos() -> bool:
    return sys.platform == "darwin"

def validate_directory(path) -> Validation:
    """Check that `path` can be used as a scan root. Never raises."""
    if not isinstance(path, (str, os.PathLike)):
        return Validation(False, "invalid")
    try:
        raw = os.fspath(path)
    except TypeError:
        return Validation(False, "invalid")
    if not raw or "\x00" in raw:
        return Validation(False, "invalid")
    if not os.path.isabs(raw):
        return Validation(False, "not-absolute")
    try:
        st = os.stat(raw)
    except (FileNotFoundError, NotADirectoryError):
        return Validation(False, "not-found")
    except PermissionError:
        return Validation(False, "permission-denied")
    except (OSError, ValueError) as e:
        logger.debug("stat failed for {}: {}", raw, e)
        return Validation(False, "invalid")
    if not stat.S_ISDIR(st.st_mode):
        return Validation(False, "not-a-directory")
    if not os.access(raw, os.R_OK | os.X_OK):
        return Validation(False, "permission-denied")
    return Validation(True)

def canonical(path: PathLike) -> Path:
    return Path(os.path.realpath(os.fspath(path)))

def is_within(candidate: PathLike, root: PathLike) -> bool:
    """True when `candidate` is `root` or lies below it, compared per path segment."""
    try:
        return canonical(candidate).is_relative_to(canonical(root))
    except (OSError, ValueError):
        return False

def pick_best_image(game_dir: Path, candidates: List[str], target_ar: float) -> Optional[str]:
    best = None
    best_score = float("inf")
    best_area = -1
    for name in candidates:
        f = game_dir / name
        try:
            with Image.open(f) as im:
                w, h = im.size
        except (OSError, ValueError) as e:
            logger.debug("Unreadable image {}: {}", f, e)
            continue
        if w <= 0 or h <= 0:
            continue
        score = abs(w / h - target_ar)
        area = w * h
        if score < best_score or (abs(score - best_score) < 1e-6 and area > best_area):
            best, best_score, best_area = name, score, area
    return best

# --- ignore patterns (gitignore-ish) ---

def load_ignore_patterns(root: Path, ignore_filename: str) -> List[str]:
    p = root / ignore_filename
    try:
        raw = p.read_text(encoding="utf-8", errors="ignore").splitlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Cannot read ignore file {}: {}", p, e)
        return []
    patterns = []
    for line in raw:
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        patterns.append(s.replace("\\", "/"))
    return patterns

def _pattern_hits(rel: str, pattern: str) -> bool:
    pattern = pattern.lstrip("/")
    if pattern.endswith("/"):
        pattern = pattern[:-1]
    elif fnmatch.fnmatch(rel, pattern):
        return True
    return rel == pattern or rel.startswith(pattern + "/")

def is_ignored(rel: str, patterns: List[str]) -> bool:
    """Last matching pattern decides; a leading '!' re-includes."""
    rel = rel.replace("\\", "/").lstrip("/")
    ignored = False
    for raw in patterns:
        negated = raw.startswith("!")
        if _pattern_hits(rel, raw[1:] if negated else raw):
            ignored = not negated
    return ignored

def is_dir_ignored(root: Path, dir_path: Path, patterns: List[str]) -> bool:
    if not patterns:
        return False
    return is_ignored(dir_path.relative_to(root).as_posix(), patterns)
