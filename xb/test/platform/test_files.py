from __future__ import annotations

import os
from pathlib import Path

import pytest

from xb.platform.files import atomic_write_text, copy_matching, matches_any


def test_atomic_write_text_replaces_existing_content(tmp_path: Path) -> None:
    path = tmp_path / "Cargo.toml"
    path.write_text("old", encoding="utf-8")

    atomic_write_text(path, "new", encoding="utf-8")

    assert path.read_text(encoding="utf-8") == "new"


def test_atomic_write_text_keeps_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "Cargo.toml"

    atomic_write_text(path, 'version = "1.0.0"\r\n')

    assert path.read_bytes() == b'version = "1.0.0"\r\n'


def test_atomic_write_text_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "Cargo.toml"

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_text(path, "payload", encoding="utf-8")

    assert list(tmp_path.iterdir()) == []


def test_matches_any() -> None:
    assert matches_any("libquiche.dll.a", (".dll.a",))
    assert matches_any("libquiche.a", (".a",))
    assert not matches_any("libquiche.rlib", (".a", ".so"))


def test_copy_matching_copies_top_level_matches(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "deps").mkdir(parents=True)
    (src / "libquiche.a").write_bytes(b"a")
    (src / "libquiche.so").write_bytes(b"so")
    (src / "libquiche.d").write_text("deps", encoding="utf-8")
    (src / "deps" / "libother.a").write_bytes(b"nested")

    copied = copy_matching(src, tmp_path / "out", (".a", ".so"))

    assert [p.name for p in copied] == ["libquiche.a", "libquiche.so"]
    assert (tmp_path / "out" / "libquiche.so").read_bytes() == b"so"
    assert not (tmp_path / "out" / "libother.a").exists()


def test_copy_matching_creates_nothing_without_matches(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "build.log").write_text("", encoding="utf-8")

    assert copy_matching(src, tmp_path / "out", (".a",)) == []
    assert not (tmp_path / "out").exists()


def test_copy_matching_missing_source(tmp_path: Path) -> None:
    assert copy_matching(tmp_path / "missing", tmp_path / "out", (".a",)) == []
