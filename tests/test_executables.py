from gameshelf.executables import sniff, is_desktop_entry
from gameshelf.models import BinaryKind

from conftest import touch, ELF_BYTES, PE_BYTES


def test_sniff_reads_magic_not_extension(tmp_path):
    assert sniff(touch(tmp_path / "game", ELF_BYTES)) is BinaryKind.ELF
    assert sniff(touch(tmp_path / "game.x86_64", PE_BYTES)) is BinaryKind.PE
    assert sniff(touch(tmp_path / "Game.exe", ELF_BYTES)) is BinaryKind.ELF
    assert sniff(touch(tmp_path / "run.sh", b"#!/bin/sh\necho hi\n")) is BinaryKind.UNKNOWN


def test_sniff_tolerates_bad_files(tmp_path):
    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")
    assert sniff(empty) is BinaryKind.UNKNOWN
    assert sniff(tmp_path / "missing.exe") is BinaryKind.UNKNOWN
    assert sniff(tmp_path) is BinaryKind.UNKNOWN


def test_desktop_entry_detection():
    assert is_desktop_entry("/usr/share/applications/Game.desktop")
    assert is_desktop_entry("/x/GAME.DESKTOP")
    assert not is_desktop_entry("/x/game.desktop.sh")
