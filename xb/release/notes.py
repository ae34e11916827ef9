from __future__ import annotations

import datetime
from collections.abc import Sequence

from .package import Archive, sha256_file
from .version import Version


def _repo_url(repo: str | None) -> str | None:
    if repo is None:
        return None
    if repo.startswith(("http://", "https://")):
        return repo.rstrip("/")
    return f"https://github.com/{repo}"


def render_release_notes(
    *,
    project: str,
    version: Version,
    tag: str,
    targets: Sequence[str],
    archives: Sequence[Archive] = (),
    repo: str | None = None,
    crate: str | None = None,
    date: datetime.date | None = None,
) -> str:
    day = (date or datetime.date.today()).isoformat()
    lines: list[str] = []
    lines.append(f"# {project} {tag}")
    lines.append("")
    lines.append(f"Version: {version}")
    lines.append(f"Release date: {day}")
    lines.append("")

    lines.append("## Pre-built Libraries")
    lines.append("")
    if targets:
        lines.extend(f"- **{t}**" for t in targets)
    else:
        lines.append("No pre-built libraries are attached to this release.")
    lines.append("")
    lines.append("Each archive contains:")
    lines.append("- Static libraries (`.a`)")
    lines.append("- Dynamic libraries (`.so`, `.dll` where applicable)")
    lines.append("- Import libraries (Windows `.dll.a`)")

    if archives:
        lines.append("")
        lines.append("## Checksums (SHA-256)")
        lines.append("")
        lines.append("```")
        for archive in archives:
            for path in archive.paths:
                lines.append(f"{sha256_file(path)}  {path.name}")
        lines.append("```")

    url = _repo_url(repo)
    if url is not None:
        lines.append("")
        lines.append("## Usage")
        lines.append("")
        lines.append("```toml")
        lines.append("[dependencies]")
        lines.append(f'{crate or project} = {{ git = "{url}" }}')
        lines.append("```")

    return "\n".join(lines).rstrip() + "\n"
