from __future__ import annotations

import pytest

from blessnet.cli.context import probe_environment
from blessnet.cli.gates import (
    EXIT_DECLINED,
    EXIT_INSTALL_FAILED,
    EXIT_NETWORK_ERROR,
    EXIT_TOOL_ERROR,
    GateOutcome,
    confirm,
    init_gate_applies,
    is_affirmative,
    run_gate,
    runtime_gate_applies,
    status_report_applies,
)
from blessnet.cli.intent import classify_intent


@pytest.mark.parametrize("answer", ["yes", "y", "YES", "Y", "Yes"])
def test_affirmative_answers(answer: str) -> None:
    assert is_affirmative(answer) is True


@pytest.mark.parametrize("answer", ["no", "n", "", " yes", "yep", None])
def test_everything_else_declines(answer) -> None:
    assert is_affirmative(answer) is False


def test_confirm_treats_end_of_input_as_decline() -> None:
    def _prompt(message: str) -> str:
        raise EOFError

    assert confirm(_prompt, "continue?") is False


def test_skipped_gate_never_prompts() -> None:
    def _prompt(message: str) -> str:  # pragma: no cover
        raise AssertionError("prompt must not be called")

    assert run_gate(False, _prompt, "continue?") is GateOutcome.SKIPPED


def test_run_gate_passes_message_through() -> None:
    seen: list[str] = []

    def _prompt(message: str) -> str:
        seen.append(message)
        return "no"

    assert run_gate(True, _prompt, "install?") is GateOutcome.DECLINED
    assert seen == ["install?"]


def _context(tmp_path, argv, *, runtime: bool, descriptor: bool):
    home = tmp_path / "home"
    if runtime:
        (home / "bin").mkdir(parents=True)
        (home / "bin" / "bls-runtime").write_text("", encoding="utf-8")
    if descriptor:
        (tmp_path / "bls.toml").write_text('name = "x"\n', encoding="utf-8")
    return probe_environment(argv, cwd=tmp_path, home=home)


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], True),
        (["deploy"], True),
        (["init", "demo"], True),
        (["version"], False),
        (["-v"], False),
        (["options", "wallet", "list"], False),
        (["options", "build"], False),
    ],
)
def test_runtime_gate_applies_when_runtime_missing(tmp_path, argv, expected) -> None:
    context = _context(tmp_path, argv, runtime=False, descriptor=False)
    assert runtime_gate_applies(context, classify_intent(argv)) is expected


def test_runtime_gate_skipped_when_runtime_present(tmp_path) -> None:
    context = _context(tmp_path, [], runtime=True, descriptor=False)
    assert runtime_gate_applies(context, classify_intent([])) is False


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], True),
        (["manage"], True),
        (["deploy"], True),
        (["deploy", "site"], False),
        (["help"], False),
        (["registry", "check"], False),
        (["options", "account", "status"], False),
        (["version"], False),
    ],
)
def test_init_gate_applies_only_without_descriptor(tmp_path, argv, expected) -> None:
    context = _context(tmp_path, argv, runtime=True, descriptor=False)
    assert init_gate_applies(context, classify_intent(argv)) is expected


def test_init_gate_never_applies_with_descriptor(tmp_path) -> None:
    context = _context(tmp_path, [], runtime=True, descriptor=True)
    assert init_gate_applies(context, classify_intent([])) is False


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], True),
        (["frobnicate"], True),
        (["registry"], True),
        (["deploy"], False),
        (["deploy", "site"], False),
        (["preview"], False),
        (["manage"], False),
        (["help"], False),
        (["version"], False),
        (["options", "build"], False),
    ],
)
def test_status_report_conditions(tmp_path, argv, expected) -> None:
    context = _context(tmp_path, argv, runtime=True, descriptor=True)
    assert status_report_applies(context, classify_intent(argv)) is expected


def test_exit_codes_share_one_module() -> None:
    assert EXIT_DECLINED == EXIT_INSTALL_FAILED == 1
    assert EXIT_NETWORK_ERROR == 2
    assert EXIT_TOOL_ERROR == 3
