"""The five release workflow phases.

Each handler takes the shared `WorkflowContext` and the current
`WorkflowState` and returns a `PhaseOutcome`:

- PhaseDone: the phase ran; state carries what changed.
- PhaseSkipped: nothing to do, or the operator chose to skip.
- PhaseFailed: the phase ran into an error. `recoverable=False` stops the
  workflow without offering to continue.
- PhaseCancelled: the operator cancelled at a prompt.

Handlers never decide whether the workflow continues after a failure; the
orchestrator does.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TypeAlias

from xb.build.controller import build_and_report
from xb.build.executor import BuildResult
from xb.build.options import BUILD_MODES, FEATURE_DESCRIPTIONS, BuildOptions
from xb.build.prereqs import available_targets, detect, missing_backends
from xb.build.targets import Registry
from xb.core.environment import Environment
from xb.core.result import Err
from xb.git.commit_message import COMMIT_TYPES, CommitMessage, release_message
from xb.git.repository import Repository
from xb.output.console import ConsoleProtocol, Style
from xb.platform.process import ProcessRunner
from xb.release.host import ReleaseAlreadyExists, ReleaseHost
from xb.release.notes import render_release_notes
from xb.release.package import (
    StagedTarget,
    archive_staged,
    format_bytes,
    stage_artifacts,
    staged_targets,
)
from xb.release.version import (
    BUMP_KINDS,
    BumpKind,
    Version,
    parse_version,
    project_manifests,
    write_all,
)

from .decisions import Cancelled, Decider, Option, ask, choose, choose_many, confirm

__all__ = [
    "HANDLERS",
    "PHASE_ORDER",
    "Phase",
    "PhaseCancelled",
    "PhaseDone",
    "PhaseFailed",
    "PhaseHandler",
    "PhaseOutcome",
    "PhaseSkipped",
    "WorkflowContext",
    "WorkflowState",
]


class Phase(StrEnum):
    VERSION = "version"
    BUILD = "build"
    PACKAGE = "package"
    COMMIT = "commit"
    RELEASE = "release"

    @property
    def title(self) -> str:
        return self.value.capitalize()


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.VERSION,
    Phase.BUILD,
    Phase.PACKAGE,
    Phase.COMMIT,
    Phase.RELEASE,
)


@dataclass(frozen=True, slots=True)
class WorkflowState:
    """What earlier phases did, consulted by later ones.

    `side_effects` becomes True on the first externally visible change
    (manifest rewrite, build outputs, commit, release).
    """

    version: Version
    version_changed: bool = False
    build_ran: bool = False
    package_ran: bool = False
    commit_ran: bool = False
    release_ran: bool = False
    build_results: tuple[BuildResult, ...] = ()
    staged: tuple[StagedTarget, ...] = ()
    failed_phases: tuple[Phase, ...] = ()
    side_effects: bool = False


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    env: Environment
    runner: ProcessRunner
    console: ConsoleProtocol
    decider: Decider
    repo: Repository
    host: ReleaseHost
    registry: Registry

    def tag(self, version: Version) -> str:
        return self.env.tag_for(version)


@dataclass(frozen=True, slots=True)
class PhaseDone:
    state: WorkflowState


@dataclass(frozen=True, slots=True)
class PhaseSkipped:
    state: WorkflowState
    reason: str


@dataclass(frozen=True, slots=True)
class PhaseFailed:
    state: WorkflowState
    message: str
    hint: str | None = None
    recoverable: bool = True


@dataclass(frozen=True, slots=True)
class PhaseCancelled:
    state: WorkflowState


PhaseOutcome: TypeAlias = PhaseDone | PhaseSkipped | PhaseFailed | PhaseCancelled
PhaseHandler: TypeAlias = Callable[[WorkflowContext, WorkflowState], Awaitable[PhaseOutcome]]


def validate_version_text(text: str) -> str | None:
    if isinstance(parse_version(text), Err):
        return "Version must be in format: major.minor.patch"
    return None


# -----------------------------------------------------------------------------
# Version
# -----------------------------------------------------------------------------


async def version_phase(ctx: WorkflowContext, state: WorkflowState) -> PhaseOutcome:
    current = state.version
    ctx.console.note("Version Information", f"Current version: {current}")

    options = [Option("skip", "Skip (keep current)", ctx.tag(current))]
    for kind in BUMP_KINDS:
        options.append(Option(kind, f"{kind.capitalize()} ({current.bump(kind)})"))
    options.append(Option("custom", "Custom version", "Specify manually"))

    action = choose(ctx.decider, "version_action", "Version update:", options, default="skip")
    if isinstance(action, Cancelled):
        return PhaseCancelled(state)
    if action == "skip":
        return PhaseSkipped(state, f"Keeping version {current}")

    if action == "custom":
        text = ask(
            ctx.decider,
            "custom_version",
            "Enter version:",
            validate=validate_version_text,
        )
        if isinstance(text, Cancelled):
            return PhaseCancelled(state)
        parsed = parse_version(text)
        if isinstance(parsed, Err):
            return PhaseFailed(state, parsed.error.message, recoverable=False)
        new = parsed.value
    else:
        kinds: dict[str, BumpKind] = {k: k for k in BUMP_KINDS}
        new = current.bump(kinds[action])

    if new == current:
        return PhaseSkipped(state, f"Version is already {current}")

    manifests = project_manifests(ctx.env)
    written = write_all(manifests, new)
    if isinstance(written, Err):
        return PhaseFailed(state, written.error.message, recoverable=False)

    ctx.console.success(f"Updated version to {new}")
    ctx.console.note(
        "Version Update",
        "Updated files:\n" + "\n".join(f"  - {m.describe()}" for m in manifests),
    )
    return PhaseDone(replace(state, version=new, version_changed=True, side_effects=True))


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


def _select_options(ctx: WorkflowContext) -> BuildOptions | Cancelled | str:
    """Ask for mode, features and presentation flags. A str is an error."""
    build_cfg = ctx.env.config.build
    mode = choose(
        ctx.decider,
        "build_mode",
        "Select build mode:",
        [
            Option("release", "Release", "Optimized build"),
            Option("debug", "Debug", "Faster compile, includes debug symbols"),
        ],
        default=BUILD_MODES[0],
    )
    if isinstance(mode, Cancelled):
        return mode

    features = choose_many(
        ctx.decider,
        "features",
        "Select features to enable:",
        [Option(f, f.upper(), FEATURE_DESCRIPTIONS.get(f)) for f in build_cfg.features],
        default=build_cfg.default_features,
    )
    if isinstance(features, Cancelled):
        return features

    parallel = confirm(ctx.decider, "parallel", "Build platforms in parallel?", default=False)
    if isinstance(parallel, Cancelled):
        return parallel
    verbose = confirm(ctx.decider, "verbose", "Show detailed build output?", default=True)
    if isinstance(verbose, Cancelled):
        return verbose

    created = BuildOptions.create(
        mode=mode,
        features=features,
        allowed_features=build_cfg.features,
        parallel=parallel,
        verbose=verbose,
    )
    if isinstance(created, Err):
        return created.error.message
    return created.value


async def build_phase(ctx: WorkflowContext, state: WorkflowState) -> PhaseOutcome:
    run = confirm(ctx.decider, "run_build", "Run build?", default=True)
    if isinstance(run, Cancelled):
        return PhaseCancelled(state)
    if not run:
        return PhaseSkipped(state, "Skipped build")

    detection = await detect(ctx.env, ctx.runner)
    missing = missing_backends(detection)
    if missing:
        ctx.console.note(
            "Prerequisites Check",
            "Missing tools: "
            + ", ".join(m.backend for m in missing)
            + "\n\n"
            + "\n".join(f"- {m.hint}" for m in missing)
            + "\n\nSome build targets will be unavailable.",
        )

    available = available_targets(ctx.registry, detection)
    if not available:
        return PhaseFailed(
            state,
            "No build targets available",
            hint="Install cross-rs and/or Docker",
        )

    selected_ids = choose_many(
        ctx.decider,
        "targets",
        "Select platforms to build:",
        [Option(t.id, t.label, t.description) for t in available],
        default=[t.id for t in available],
        required=True,
    )
    if isinstance(selected_ids, Cancelled):
        return PhaseCancelled(state)
    if not selected_ids:
        return PhaseSkipped(state, "No targets selected; nothing was built")
    selected = [t for t in available if t.id in selected_ids]

    options = _select_options(ctx)
    if isinstance(options, Cancelled):
        return PhaseCancelled(state)
    if isinstance(options, str):
        return PhaseFailed(state, options)

    ctx.console.note(
        "Build Configuration",
        f"Platforms: {', '.join(t.label for t in selected)}\n"
        f"Build mode: {options.mode}\n"
        f"Features: {', '.join(sorted(options.features)) or 'none'}\n"
        f"Parallel: {'yes' if options.parallel else 'no'}\n"
        f"Verbose: {'yes' if options.verbose else 'no'}",
    )
    start = confirm(ctx.decider, "start_build", "Start build?", default=True)
    if isinstance(start, Cancelled):
        return PhaseCancelled(state)
    if not start:
        return PhaseSkipped(state, "Build not started")

    summary = await build_and_report(
        selected,
        options,
        env=ctx.env,
        runner=ctx.runner,
        console=ctx.console,
    )
    built = replace(
        state,
        build_ran=True,
        build_results=summary.results,
        side_effects=True,
    )
    if summary.failed:
        return PhaseFailed(
            built,
            f"{len(summary.failed)} of {summary.attempted} target(s) failed",
        )
    return PhaseDone(built)


# -----------------------------------------------------------------------------
# Package
# -----------------------------------------------------------------------------


async def package_phase(ctx: WorkflowContext, state: WorkflowState) -> PhaseOutcome:
    if not state.build_ran:
        return PhaseSkipped(state, "Nothing was built; skipping packaging")
    if not any(r.success for r in state.build_results):
        return PhaseSkipped(state, "No successful builds to package")

    run = confirm(ctx.decider, "run_package", "Package build artifacts?", default=True)
    if isinstance(run, Cancelled):
        return PhaseCancelled(state)
    if not run:
        return PhaseSkipped(state, "Skipped packaging")

    staged = stage_artifacts(state.build_results, state.version, env=ctx.env, console=ctx.console)
    if isinstance(staged, Err):
        return PhaseFailed(state, staged.error.message, hint=staged.error.hint)

    ctx.console.success(
        f"Packaged {len(staged.value)} target(s) into "
        f"{ctx.env.config.release.releases_dir}/{ctx.tag(state.version)}/"
    )
    return PhaseDone(replace(state, package_ran=True, staged=tuple(staged.value), side_effects=True))


# -----------------------------------------------------------------------------
# Commit
# -----------------------------------------------------------------------------


def _compose_commit_message(decider: Decider, default: CommitMessage) -> CommitMessage | Cancelled:
    """Ask for each conventional commit part; defaults reproduce `default`."""
    kind = choose(
        decider,
        "commit_type",
        "Commit type:",
        [Option(name, name, hint=description) for name, description in COMMIT_TYPES.items()],
        default=default.type,
    )
    if isinstance(kind, Cancelled):
        return kind
    scope = ask(decider, "commit_scope", "Scope (optional):", default=default.scope or "")
    if isinstance(scope, Cancelled):
        return scope
    subject = ask(
        decider,
        "commit_subject",
        "Subject:",
        default=default.subject,
        validate=lambda s: None if s.strip() else "Subject must not be empty",
    )
    if isinstance(subject, Cancelled):
        return subject
    body = ask(decider, "commit_body", "Body (optional):", default=default.body or "")
    if isinstance(body, Cancelled):
        return body
    breaking = confirm(decider, "commit_breaking", "Breaking change?", default=default.breaking)
    if isinstance(breaking, Cancelled):
        return breaking

    return CommitMessage(
        type=kind,
        subject=subject,
        scope=scope.strip() or None,
        body=body.strip() or None,
        breaking=breaking,
    )


async def commit_phase(ctx: WorkflowContext, state: WorkflowState) -> PhaseOutcome:
    if not (state.version_changed or state.build_ran):
        return PhaseSkipped(state, "Nothing changed; skipping commit")
    if await ctx.repo.is_clean():
        return PhaseSkipped(state, "No changes to commit")

    run = confirm(ctx.decider, "run_commit", "Commit changes?", default=True)
    if isinstance(run, Cancelled):
        return PhaseCancelled(state)
    if not run:
        return PhaseSkipped(state, "Skipped commit")

    tag = ctx.tag(state.version)
    composed = _compose_commit_message(ctx.decider, release_message(tag))
    if isinstance(composed, Cancelled):
        return PhaseCancelled(state)
    message = composed.render()

    create_tag = False
    if state.version_changed:
        answer = confirm(ctx.decider, "create_tag", f"Create tag {tag}?", default=True)
        if isinstance(answer, Cancelled):
            return PhaseCancelled(state)
        create_tag = answer

    push = confirm(ctx.decider, "push", "Push to remote?", default=False)
    if isinstance(push, Cancelled):
        return PhaseCancelled(state)

    added = await ctx.repo.add_all()
    if isinstance(added, Err):
        return PhaseFailed(state, f"git add failed: {added.error.message}")
    committed = await ctx.repo.commit(message)
    if isinstance(committed, Err):
        return PhaseFailed(state, f"git commit failed: {committed.error.message}")

    state = replace(state, commit_ran=True, side_effects=True)
    ctx.console.success(f"Committed: {message.splitlines()[0]}")

    if create_tag:
        tagged = await ctx.repo.tag(tag, f"Release {tag}")
        if isinstance(tagged, Err):
            return PhaseFailed(state, f"git tag failed: {tagged.error.message}")
        ctx.console.success(f"Created tag {tag}")

    if push:
        pushed = await ctx.repo.push()
        if isinstance(pushed, Err):
            return PhaseFailed(state, f"git push failed: {pushed.error.message}")
        if create_tag:
            pushed_tags = await ctx.repo.push_tags()
            if isinstance(pushed_tags, Err):
                return PhaseFailed(state, f"git push --tags failed: {pushed_tags.error.message}")
        ctx.console.success("Pushed to remote")

    return PhaseDone(state)


# -----------------------------------------------------------------------------
# Release
# -----------------------------------------------------------------------------


async def release_phase(ctx: WorkflowContext, state: WorkflowState) -> PhaseOutcome:
    tag = ctx.tag(state.version)
    run = confirm(ctx.decider, "run_release", f"Create release for {tag}?", default=True)
    if isinstance(run, Cancelled):
        return PhaseCancelled(state)
    if not run:
        return PhaseSkipped(state, "Skipped release creation")

    ready = await ctx.host.ensure_ready()
    if isinstance(ready, Err):
        return PhaseFailed(state, ready.error.message, hint=ready.error.hint)

    staged = list(state.staged) or staged_targets(ctx.env, state.version)
    if not staged:
        return PhaseFailed(
            state,
            f"No release artifacts found for {tag}",
            hint="Run the package phase first",
        )
    chosen = choose_many(
        ctx.decider,
        "release_targets",
        "Targets to include in the release:",
        [Option(s.target_id, s.target_id, hint=f"{len(s.files)} file(s)") for s in staged],
        default=[s.target_id for s in staged],
        required=True,
    )
    if isinstance(chosen, Cancelled):
        return PhaseCancelled(state)
    staged = [s for s in staged if s.target_id in chosen]

    project = ctx.env.config.project.name
    title = ask(ctx.decider, "release_title", "Release name:", default=f"{project} {tag}")
    if isinstance(title, Cancelled):
        return PhaseCancelled(state)
    draft = confirm(ctx.decider, "draft", "Create as draft?", default=False)
    if isinstance(draft, Cancelled):
        return PhaseCancelled(state)
    prerelease = confirm(ctx.decider, "prerelease", "Mark as pre-release?", default=False)
    if isinstance(prerelease, Cancelled):
        return PhaseCancelled(state)

    archives = archive_staged(staged, state.version, env=ctx.env)
    if isinstance(archives, Err):
        return PhaseFailed(state, archives.error.message, hint=archives.error.hint)
    ctx.console.note(
        "Created Archives",
        "\n".join(
            f"{a.target_id}: {a.zip_path.name}, {a.tar_path.name} ({format_bytes(a.size)})"
            for a in archives.value
        ),
    )

    notes = render_release_notes(
        project=project,
        version=state.version,
        tag=tag,
        targets=[s.target_id for s in staged],
        archives=archives.value,
        repo=ctx.env.config.project.repo,
        crate=next((m.name for m in ctx.env.config.manifests if m.name), None),
    )
    created = await ctx.host.create_release(
        tag, title=title, notes=notes, draft=draft, prerelease=prerelease
    )
    if isinstance(created, Err):
        error = created.error
        if not isinstance(error, ReleaseAlreadyExists):
            return PhaseFailed(state, error.message, hint=error.hint)
        ctx.console.warning(f"Release {tag} already exists.")
        use = confirm(
            ctx.decider,
            "use_existing_release",
            "Use existing release and upload assets?",
            default=True,
        )
        if isinstance(use, Cancelled):
            return PhaseCancelled(state)
        if not use:
            return PhaseSkipped(state, f"Left existing release {tag} untouched")
    else:
        ctx.console.success(f"Release {tag} created")

    state = replace(state, side_effects=True)
    uploaded = 0
    for archive in archives.value:
        for path in archive.paths:
            result = await ctx.host.upload_asset(tag, path)
            if isinstance(result, Err):
                return PhaseFailed(state, result.error.message, hint=result.error.hint)
            uploaded += 1
    ctx.console.success(f"Uploaded {uploaded} asset(s)")

    url = await ctx.host.release_url(tag)
    if url:
        ctx.console.print(url, Style.INFO)
    return PhaseDone(replace(state, release_ran=True))


HANDLERS: dict[Phase, PhaseHandler] = {
    Phase.VERSION: version_phase,
    Phase.BUILD: build_phase,
    Phase.PACKAGE: package_phase,
    Phase.COMMIT: commit_phase,
    Phase.RELEASE: release_phase,
}
