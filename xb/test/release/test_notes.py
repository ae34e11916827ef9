from __future__ import annotations

import datetime
from pathlib import Path

from xb.release.notes import render_release_notes
from xb.release.package import Archive, sha256_file
from xb.release.version import Version

DAY = datetime.date(2026, 3, 1)


def test_lists_targets_and_date() -> None:
    notes = render_release_notes(
        project="quiche-nwep",
        version=Version(1, 2, 0),
        tag="v1.2.0",
        targets=["linux-arm64", "native"],
        date=DAY,
    )

    assert notes.startswith("# quiche-nwep v1.2.0\n")
    assert "Version: 1.2.0" in notes
    assert "Release date: 2026-03-01" in notes
    assert "- **linux-arm64**" in notes
    assert "- **native**" in notes
    assert "## Usage" not in notes
    assert notes.endswith("\n")


def test_no_targets() -> None:
    notes = render_release_notes(project="p", version=Version(0, 1, 0), tag="v0.1.0", targets=[], date=DAY)
    assert "No pre-built libraries" in notes


def test_checksums_and_usage(tmp_path: Path) -> None:
    zip_path = tmp_path / "p-v1.0.0-native.zip"
    tar_path = tmp_path / "p-v1.0.0-native.tar.gz"
    zip_path.write_bytes(b"zip")
    tar_path.write_bytes(b"tar")

    notes = render_release_notes(
        project="p",
        version=Version(1, 0, 0),
        tag="v1.0.0",
        targets=["native"],
        archives=[Archive("native", zip_path, tar_path)],
        repo="acme/p",
        crate="quiche",
        date=DAY,
    )

    assert f"{sha256_file(zip_path)}  p-v1.0.0-native.zip" in notes
    assert f"{sha256_file(tar_path)}  p-v1.0.0-native.tar.gz" in notes
    assert 'quiche = { git = "https://github.com/acme/p" }' in notes


def test_full_repo_url_kept() -> None:
    notes = render_release_notes(
        project="p",
        version=Version(1, 0, 0),
        tag="v1.0.0",
        targets=[],
        repo="https://git.example.org/p/",
        date=DAY,
    )
    assert 'p = { git = "https://git.example.org/p" }' in notes
