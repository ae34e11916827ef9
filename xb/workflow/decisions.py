"""Operator decisions as data.

The workflow never talks to a terminal. Each question is a `Prompt` record
handed to a `Decider`, which returns an answer or `CANCELLED`. The CLI plugs
in an interactive decider; tests and `--yes` runs use `ScriptedDecider`.

Prompt keys are stable identifiers ("proceed_dirty", "version_action",
"continue_after_error", ...) so scripted answers can address them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final, Protocol, TypeAlias, final

__all__ = [
    "Answer",
    "Ask",
    "CANCELLED",
    "Cancelled",
    "Choose",
    "ChooseMany",
    "Confirm",
    "Decider",
    "Option",
    "Prompt",
    "ScriptedDecider",
    "ask",
    "choose",
    "choose_many",
    "confirm",
    "default_answer",
]


@final
class Cancelled:
    """Sentinel type: the operator cancelled at a prompt."""

    _instance: Cancelled | None = None

    def __new__(cls) -> Cancelled:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED: Final = Cancelled()


@dataclass(frozen=True, slots=True)
class Option:
    value: str
    label: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class Confirm:
    key: str
    message: str
    default: bool = False


@dataclass(frozen=True, slots=True)
class Choose:
    key: str
    message: str
    options: tuple[Option, ...]
    default: str

    def __post_init__(self) -> None:
        if self.default not in {o.value for o in self.options}:
            raise ValueError(f"default {self.default!r} is not one of the options for {self.key}")


@dataclass(frozen=True, slots=True)
class ChooseMany:
    key: str
    message: str
    options: tuple[Option, ...]
    default: tuple[str, ...] = ()
    required: bool = False


@dataclass(frozen=True, slots=True)
class Ask:
    """Free text. `validate` returns an error message, or None when valid."""

    key: str
    message: str
    default: str | None = None
    validate: Callable[[str], str | None] | None = None


Prompt: TypeAlias = Confirm | Choose | ChooseMany | Ask
Answer: TypeAlias = bool | str | tuple[str, ...] | Cancelled


class Decider(Protocol):
    def decide(self, prompt: Prompt) -> Answer: ...


def _mismatch(prompt: Prompt, answer: object) -> TypeError:
    return TypeError(f"unexpected answer {answer!r} for prompt {prompt.key}")


def confirm(decider: Decider, key: str, message: str, *, default: bool = False) -> bool | Cancelled:
    prompt = Confirm(key, message, default)
    answer = decider.decide(prompt)
    if isinstance(answer, Cancelled | bool):
        return answer
    raise _mismatch(prompt, answer)


def choose(
    decider: Decider,
    key: str,
    message: str,
    options: Sequence[Option],
    *,
    default: str,
) -> str | Cancelled:
    prompt = Choose(key, message, tuple(options), default)
    answer = decider.decide(prompt)
    if isinstance(answer, Cancelled):
        return answer
    if isinstance(answer, str) and answer in {o.value for o in prompt.options}:
        return answer
    raise _mismatch(prompt, answer)


def choose_many(
    decider: Decider,
    key: str,
    message: str,
    options: Sequence[Option],
    *,
    default: Sequence[str] = (),
    required: bool = False,
) -> tuple[str, ...] | Cancelled:
    prompt = ChooseMany(key, message, tuple(options), tuple(default), required)
    answer = decider.decide(prompt)
    if isinstance(answer, Cancelled):
        return answer
    allowed = {o.value for o in prompt.options}
    if isinstance(answer, tuple) and all(a in allowed for a in answer):
        # Keep option order regardless of the order answers were given in.
        return tuple(o.value for o in prompt.options if o.value in answer)
    raise _mismatch(prompt, answer)


def ask(
    decider: Decider,
    key: str,
    message: str,
    *,
    default: str | None = None,
    validate: Callable[[str], str | None] | None = None,
) -> str | Cancelled:
    prompt = Ask(key, message, default, validate)
    answer = decider.decide(prompt)
    if isinstance(answer, Cancelled):
        return answer
    if not isinstance(answer, str):
        raise _mismatch(prompt, answer)
    if validate is not None and (problem := validate(answer)) is not None:
        raise ValueError(f"invalid answer for {key}: {problem}")
    return answer


def default_answer(prompt: Prompt) -> Answer:
    match prompt:
        case Confirm(default=default):
            return default
        case Choose(default=default):
            return default
        case ChooseMany(default=default):
            return default
        case Ask(key=key, default=default):
            if default is None:
                raise LookupError(f"no answer and no default for prompt {key}")
            return default


def _empty_asked() -> list[Prompt]:
    return []


@dataclass
class ScriptedDecider:
    """Answers prompts from a mapping keyed by prompt key.

    A list value supplies successive answers for a key asked more than once.
    Keys without an answer fall back to the prompt's default.
    """

    answers: Mapping[str, Answer | list[Answer]] = field(default_factory=dict)
    asked: list[Prompt] = field(default_factory=_empty_asked)

    def __post_init__(self) -> None:
        self._queues: dict[str, list[Answer]] = {
            k: list(v) for k, v in self.answers.items() if isinstance(v, list)
        }

    def decide(self, prompt: Prompt) -> Answer:
        self.asked.append(prompt)
        queue = self._queues.get(prompt.key)
        if queue is not None:
            if queue:
                return queue.pop(0)
            return default_answer(prompt)
        if prompt.key in self.answers:
            value = self.answers[prompt.key]
            if not isinstance(value, list):
                return value
        return default_answer(prompt)

    # Test helper methods

    @property
    def keys(self) -> list[str]:
        """Keys of every prompt asked, in order."""
        return [p.key for p in self.asked]

    def was_asked(self, key: str) -> bool:
        return key in self.keys
