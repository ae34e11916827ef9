"""Terminal decider: answers workflow prompts with typer prompts.

Ctrl-C or end of input at any prompt answers CANCELLED.
"""

from __future__ import annotations

import typer

from xb.output.console import ConsoleProtocol, Style
from xb.workflow.decisions import (
    CANCELLED,
    Answer,
    Ask,
    Choose,
    ChooseMany,
    Confirm,
    Option,
    Prompt,
)


def _option_line(index: int, option: Option, marker: str = "") -> str:
    hint = f" ({option.hint})" if option.hint else ""
    return f"{index:2}. {marker}{option.label}{hint}"


def parse_picks(raw: str, count: int) -> list[int] | None:
    """Parse "1,3 4" into zero-based indices; None when malformed."""
    picks: list[int] = []
    for part in raw.replace(",", " ").split():
        try:
            idx = int(part)
        except ValueError:
            return None
        if idx < 1 or idx > count:
            return None
        if idx - 1 not in picks:
            picks.append(idx - 1)
    return picks


class InteractiveDecider:
    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def decide(self, prompt: Prompt) -> Answer:
        try:
            match prompt:
                case Confirm():
                    return typer.confirm(prompt.message, default=prompt.default)
                case Choose():
                    return self._choose(prompt)
                case ChooseMany():
                    return self._choose_many(prompt)
                case Ask():
                    return self._ask(prompt)
        except typer.Abort:
            return CANCELLED

    def _choose(self, prompt: Choose) -> str:
        self._console.print(prompt.message)
        values = [o.value for o in prompt.options]
        for i, option in enumerate(prompt.options, start=1):
            self._console.print(_option_line(i, option), Style.DIM)

        default_idx = values.index(prompt.default) + 1
        while True:
            raw = typer.prompt("Pick number", default=str(default_idx))
            picks = parse_picks(raw, len(values))
            if picks is None or len(picks) != 1:
                self._console.error("pick one number from the list")
                continue
            return values[picks[0]]

    def _choose_many(self, prompt: ChooseMany) -> tuple[str, ...]:
        self._console.print(prompt.message)
        values = [o.value for o in prompt.options]
        for i, option in enumerate(prompt.options, start=1):
            marker = "* " if option.value in prompt.default else "  "
            self._console.print(_option_line(i, option, marker), Style.DIM)

        default = " ".join(str(values.index(v) + 1) for v in prompt.default if v in values)
        while True:
            raw = typer.prompt("Pick numbers (space or comma separated)", default=default or "")
            picks = parse_picks(raw, len(values))
            if picks is None:
                self._console.error("invalid selection")
                continue
            if prompt.required and not picks:
                self._console.error("select at least one")
                continue
            return tuple(values[i] for i in sorted(picks))

    def _ask(self, prompt: Ask) -> str:
        while True:
            if prompt.default is None:
                raw: str = typer.prompt(prompt.message)
            else:
                raw = typer.prompt(prompt.message, default=prompt.default)
            if prompt.validate is not None and (problem := prompt.validate(raw)) is not None:
                self._console.error(problem)
                continue
            return raw
