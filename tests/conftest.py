from __future__ import annotations
import io
import sys
from pathlib import Path

import pytest

# Ensure project root import when running without an install
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ELF_BYTES = b"\x7fELF\x02\x01\x01" + b"\x00" * 9
PE_BYTES = b"MZ\x90\x00" + b"\x00" * 12


def touch(p: Path, data: bytes = b"", mode: int | None = None) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data or b"stub")
    if mode is not None:
        p.chmod(mode)
    return p


def png(w=600, h=800) -> bytes:
    from PIL import Image
    buf = io.BytesIO()
    Image.new("RGB", (w, h), (12, 34, 56)).save(buf, format="PNG")
    return buf.getvalue()


def write_manifest(library: Path, app_id: str, name: str, installdir: str) -> Path:
    steamapps = library / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)
    p = steamapps / f"appmanifest_{app_id}.acf"
    p.write_text(
        '"AppState"\n{\n'
        f'\t"appid"\t\t"{app_id}"\n'
        '\t"Universe"\t\t"1"\n'
        f'\t"name"\t\t"{name}"\n'
        '\t"StateFlags"\t\t"4"\n'
        f'\t"installdir"\t\t"{installdir}"\n'
        '}\n',
        encoding="utf-8",
    )
    return p


@pytest.fixture
def popen_calls(monkeypatch):
    """Replace Popen in the launcher with a recorder; yields the list of (args, kwargs)."""
    import gameshelf.launch as L
    calls = []

    class _P:
        def __init__(self, *a, **kw):
            calls.append((a, kw))

    monkeypatch.setattr(L.subprocess, "Popen", _P)
    return calls
