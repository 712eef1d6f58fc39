"""Executable detection: a cheap name filter for scans, a magic-byte sniff for launches."""
from pathlib import Path
from typing import Union

from loguru import logger

from .models import BinaryKind

EXEC_EXTS = {".exe", ".bin", ".x86_64", ".x86", ".sh", ".appimage"}
DESKTOP_ENTRY_EXT = ".desktop"

ELF_MAGIC = b"\x7fELF"
PE_MAGIC = b"MZ"

def looks_executable(filename: str) -> bool:
    return Path(filename).suffix.lower() in EXEC_EXTS

def is_desktop_entry(path: Union[str, Path]) -> bool:
    return str(path).lower().endswith(DESKTOP_ENTRY_EXT)

def sniff(path: Union[str, Path]) -> BinaryKind:
    """Classify a file by its leading bytes. Unreadable or short files are UNKNOWN."""
    try:
        with open(path, "rb") as fh:
            head = fh.read(4)
    except OSError as e:
        logger.debug("Cannot sniff {}: {}", path, e)
        return BinaryKind.UNKNOWN
    if head.startswith(ELF_MAGIC):
        return BinaryKind.ELF
    if head.startswith(PE_MAGIC):
        return BinaryKind.PE
    return BinaryKind.UNKNOWN
