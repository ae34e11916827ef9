from __future__ import annotations

from dataclasses import dataclass

import typer

from xb.build.targets import Registry, default_registry
from xb.core.environment import Environment, load_environment
from xb.core.errors import ErrorCode
from xb.core.result import Err
from xb.git.repository import Repository
from xb.output.console import ConsoleProtocol, RichConsole, Style
from xb.platform.process import AsyncProcessRunner, ProcessRunner
from xb.release.host import GhReleaseHost
from xb.workflow.decisions import Decider
from xb.workflow.phases import WorkflowContext


@dataclass(frozen=True, slots=True)
class CLIContext:
    env: Environment
    runner: ProcessRunner
    registry: Registry
    console: ConsoleProtocol

    def workflow(self, decider: Decider) -> WorkflowContext:
        process_env = self.env.process_env()
        return WorkflowContext(
            env=self.env,
            runner=self.runner,
            console=self.console,
            decider=decider,
            repo=Repository(self.env.root, self.runner, env=process_env),
            host=GhReleaseHost(
                self.env.root,
                self.runner,
                repo=self.env.config.project.repo,
                env=process_env,
            ),
            registry=self.registry,
        )


def build_context() -> CLIContext:
    console = RichConsole()
    env_result = load_environment()
    if isinstance(env_result, Err):
        console.error(env_result.error.message)
        if env_result.error.hint:
            console.print(f"hint: {env_result.error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    env = env_result.value
    return CLIContext(
        env=env,
        runner=AsyncProcessRunner(),
        registry=default_registry(env.config.build),
        console=console,
    )
