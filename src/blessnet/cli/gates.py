"""Interactive confirmation gates and terminal exit decisions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from rich.console import Console
from rich.text import Text

from blessnet.cli.context import InvocationContext
from blessnet.cli.intent import IntentClassification

EXIT_SUCCESS = 0
EXIT_DECLINED = 1
EXIT_INSTALL_FAILED = 1
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_TOOL_ERROR = 3

AFFIRMATIVE_ANSWERS = frozenset({"yes", "y"})

RUNTIME_PROMPT = "BLESS environment not found. Do you want to install it? (yes/no): "
INIT_PROMPT = (
    "Run `blessnet help` for more information.\n\n"
    "No bls.toml file detected in the current directory.\n"
    "Initialize project? (yes/no): "
)

PromptFn = Callable[[str], str]


@dataclass(frozen=True)
class ExitDecision:
    code: int
    reason: str = ""


@dataclass(frozen=True)
class Dispatch:
    argv: tuple[str, ...]

    @classmethod
    def of(cls, argv: Sequence[str]) -> "Dispatch":
        return cls(argv=tuple(argv))


class GateOutcome(Enum):
    SKIPPED = "skipped"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


def console_prompt(console: Console) -> PromptFn:
    def _ask(message: str) -> str:
        return console.input(Text(message, style="yellow"))

    return _ask


def is_affirmative(answer: str | None) -> bool:
    if answer is None:
        return False
    return answer.lower() in AFFIRMATIVE_ANSWERS


def confirm(prompt: PromptFn, message: str) -> bool:
    try:
        answer = prompt(message)
    except (EOFError, KeyboardInterrupt):
        return False
    return is_affirmative(answer)


def runtime_gate_applies(context: InvocationContext, intent: IntentClassification) -> bool:
    return not intent.skips_runtime_check and not context.has_runtime


def init_gate_applies(context: InvocationContext, intent: IntentClassification) -> bool:
    if context.has_descriptor:
        return False
    return not (
        intent.is_version
        or intent.is_help
        or intent.is_options
        or intent.is_registry
        or intent.is_build
        or intent.has_deploy_target
    )


def status_report_applies(context: InvocationContext, intent: IntentClassification) -> bool:
    if not context.has_descriptor or intent.has_deploy_target:
        return False
    if intent.skips_runtime_check:
        return False
    return not intent.wants_subcommand


def run_gate(applies: bool, prompt: PromptFn, message: str) -> GateOutcome:
    if not applies:
        return GateOutcome.SKIPPED
    if confirm(prompt, message):
        return GateOutcome.CONFIRMED
    return GateOutcome.DECLINED
