# gameshelf/launch.py
from __future__ import annotations

import os
import shlex
import stat
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger

from .executables import is_desktop_entry, sniff
from .models import AppManifest, BinaryKind, LaunchResult, Strategy
from .steam import OwnershipResolver
from .utils import is_windows, is_macos

STEAM_RUN_URL = "steam://rungameid/{app_id}"
EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH

# ──────────────────────────────────────────────────────────────────────────────
# Small helpers
# ──────────────────────────────────────────────────────────────────────────────

def _spawn_detached(argv: List[str], cwd: Optional[str] = None) -> None:
    """Start a process and forget about it: no handle, no output capture."""
    kwargs = dict(
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
    )
    if not is_windows():
        kwargs["start_new_session"] = True
    subprocess.Popen(argv, **kwargs)

def open_with_default_handler(target: str) -> None:
    """Hand a file or URL to the desktop's default handler."""
    if is_windows():
        os.startfile(target)  # type: ignore[attr-defined]
    elif is_macos():
        _spawn_detached(["open", target])
    else:
        _spawn_detached(["xdg-open", target])

def ensure_executable(path: Path) -> bool:
    """Make sure the current user may execute `path`.

    Returns True when execute bits had to be added. Raises PermissionError
    when they could not be, and other OSErrors (missing file, ...) untouched.
    """
    st = os.stat(path)
    if os.access(path, os.X_OK):
        return False
    logger.info("Adding execute permission to {}", path)
    os.chmod(path, stat.S_IMODE(st.st_mode) | EXEC_BITS)
    return True

# ──────────────────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────────────────

class LaunchDispatcher:
    """
    Decide how to start a game and start it.

    - Paths inside a Steam install folder are delegated to Steam.
    - Otherwise execute permission is repaired if missing, then the file is
      classified: .desktop -> default handler, ELF -> direct, PE -> compat
      runner (direct on Windows), anything else -> direct, best effort.
    """

    def __init__(
        self,
        resolver: Optional[OwnershipResolver] = None,
        *,
        compat_runner: Sequence[str] | str = "wine",
        sniffer: Callable[[Path], BinaryKind] = sniff,
        opener: Callable[[str], None] = open_with_default_handler,
    ):
        self.resolver = resolver if resolver is not None else OwnershipResolver()
        if isinstance(compat_runner, str):
            compat_runner = shlex.split(compat_runner)
        self.compat_runner = list(compat_runner) or ["wine"]
        self.sniffer = sniffer
        self.opener = opener

    def launch(self, target) -> LaunchResult:
        try:
            return self._launch(Path(target))
        except Exception as e:
            logger.error("Launch of {} failed: {}", target, e)
            return LaunchResult(success=False, error=str(e))

    def _launch(self, target: Path) -> LaunchResult:
        app = self.resolver.resolve(target)
        if app is not None:
            return self._delegate(app)

        try:
            ensure_executable(target)
        except OSError as e:
            logger.error("Cannot prepare {} for launch: {}", target, e)
            return LaunchResult(success=False, error=str(e))

        if is_desktop_entry(target):
            strategy, argv = Strategy.DESKTOP_ENTRY, None
        else:
            strategy, argv = self._plan(target, self.sniffer(target))

        try:
            if argv is None:
                self.opener(str(target))
            else:
                _spawn_detached(argv, cwd=str(target.parent))
        except OSError as e:
            logger.error("Launch of {} via {} failed: {}", target, strategy.value, e)
            return LaunchResult(success=False, strategy=strategy, error=str(e))

        logger.info("Launched {} ({})", target, strategy.value)
        return LaunchResult(success=True, strategy=strategy)

    def _plan(self, target: Path, kind: BinaryKind):
        if kind is BinaryKind.ELF:
            return Strategy.NATIVE, [str(target)]
        if kind is BinaryKind.PE:
            if is_windows():
                return Strategy.NATIVE, [str(target)]
            return Strategy.COMPATIBILITY_LAYER, self.compat_runner + [str(target)]
        return Strategy.BEST_EFFORT, [str(target)]

    def _delegate(self, app: AppManifest) -> LaunchResult:
        url = STEAM_RUN_URL.format(app_id=app.app_id)
        try:
            self.opener(url)
        except OSError as e:
            logger.error("Steam hand-off for app {} failed: {}", app.app_id, e)
            return LaunchResult(success=False, strategy=Strategy.DELEGATED, error=str(e),
                                app_id=app.app_id, name=app.name)
        logger.info("Delegated {} ({}) to Steam", app.name, app.app_id)
        return LaunchResult(success=True, strategy=Strategy.DELEGATED,
                            app_id=app.app_id, name=app.name)
