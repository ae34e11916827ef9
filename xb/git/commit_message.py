"""Conventional commit messages."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["COMMIT_TYPES", "CommitMessage", "release_message"]

COMMIT_TYPES: dict[str, str] = {
    "feat": "A new feature",
    "fix": "A bug fix",
    "docs": "Documentation only changes",
    "style": "Code style changes (formatting, etc)",
    "refactor": "Code refactoring",
    "perf": "Performance improvements",
    "test": "Adding or updating tests",
    "build": "Build system or dependencies",
    "ci": "CI/CD changes",
    "chore": "Other changes (tooling, etc)",
}

BREAKING_FOOTER = "BREAKING CHANGE: This commit contains breaking changes"


@dataclass(frozen=True, slots=True)
class CommitMessage:
    """`type(scope)!: subject`, an optional body and a breaking footer."""

    type: str
    subject: str
    scope: str | None = None
    body: str | None = None
    breaking: bool = False

    def __post_init__(self) -> None:
        if self.type not in COMMIT_TYPES:
            raise ValueError(f"unknown commit type: {self.type}")
        if not self.subject.strip():
            raise ValueError("commit subject must not be empty")

    @property
    def header(self) -> str:
        scope = f"({self.scope})" if self.scope else ""
        bang = "!" if self.breaking else ""
        return f"{self.type}{scope}{bang}: {self.subject.strip()}"

    def render(self) -> str:
        parts = [self.header]
        if self.body and self.body.strip():
            parts.append(self.body.strip())
        if self.breaking:
            parts.append(BREAKING_FOOTER)
        return "\n\n".join(parts)


def release_message(tag: str) -> CommitMessage:
    return CommitMessage(type="chore", subject=f"release {tag}")
