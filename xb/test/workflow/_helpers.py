from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from xb.build.targets import Registry, Target, default_registry
from xb.core.environment import Environment
from xb.core.result import Ok
from xb.git.repository import Repository
from xb.output.console import MockConsole
from xb.platform.process import ScriptedProcessRunner
from xb.release.host import InMemoryReleaseHost
from xb.workflow.decisions import Answer, ScriptedDecider
from xb.workflow.phases import WorkflowContext

PACKAGE_MANIFEST = '[package]\nname = "quiche"\nversion = "2.3.1"\nedition = "2021"\n'
WORKSPACE_MANIFEST = (
    '[workspace]\nmembers = ["quiche"]\n\n'
    '[workspace.dependencies]\nquiche = { version = "2.3.1", path = "quiche" }\n'
)


def write_project(root: Path) -> None:
    (root / "quiche").mkdir(parents=True, exist_ok=True)
    (root / "quiche" / "Cargo.toml").write_text(PACKAGE_MANIFEST, encoding="utf-8")
    (root / "Cargo.toml").write_text(WORKSPACE_MANIFEST, encoding="utf-8")


def write_native_artifacts(root: Path) -> None:
    out = root / "target" / "release"
    out.mkdir(parents=True, exist_ok=True)
    (out / "libquiche.a").write_bytes(b"static")
    (out / "libquiche.so").write_bytes(b"shared")
    (out / "quiche.d").write_text("deps", encoding="utf-8")


def registry_of(*target_ids: str) -> Registry:
    catalog = default_registry()
    picked: list[Target] = []
    for target_id in target_ids:
        result = catalog.get(target_id)
        assert isinstance(result, Ok)
        picked.append(result.value)
    return Registry(picked)


def dirty_tree(runner: ScriptedProcessRunner, root: Path) -> ScriptedProcessRunner:
    """Clean before the run starts, dirty once phases have changed files."""
    runner.add(f"git -C {root} status --porcelain=v1", stdout="## main...origin/main\n")
    runner.add(f"git -C {root} status --porcelain", stdout=" M Cargo.toml\n")
    return runner


@dataclass
class Harness:
    root: Path
    runner: ScriptedProcessRunner = field(default_factory=ScriptedProcessRunner)
    console: MockConsole = field(default_factory=MockConsole)
    host: InMemoryReleaseHost = field(default_factory=InMemoryReleaseHost)
    registry: Registry = field(default_factory=lambda: registry_of("native"))
    decider: ScriptedDecider = field(default_factory=ScriptedDecider)

    def context(self, answers: Mapping[str, Answer | list[Answer]] | None = None) -> WorkflowContext:
        self.decider = ScriptedDecider(dict(answers or {}))
        return WorkflowContext(
            env=Environment(root=self.root),
            runner=self.runner,
            console=self.console,
            decider=self.decider,
            repo=Repository(self.root, self.runner),
            host=self.host,
            registry=self.registry,
        )
