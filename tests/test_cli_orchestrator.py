from __future__ import annotations

import io

import pytest

from blessnet.cli.descriptor import DescriptorError
from blessnet.cli.gates import INIT_PROMPT, RUNTIME_PROMPT
from blessnet.cli.main import main
from blessnet.errors import RuntimeInstallError


class _ScriptedPrompt:
    def __init__(self, *answers: str) -> None:
        self.answers = list(answers)
        self.messages: list[str] = []

    def __call__(self, message: str) -> str:
        self.messages.append(message)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {message!r}")
        return self.answers.pop(0)


def _run(argv, prompt=None):
    out = io.StringIO()
    err = io.StringIO()
    rc = main(argv, stdout=out, stderr=err, prompt=prompt or _ScriptedPrompt())
    return rc, out.getvalue(), err.getvalue()


def _forbid_router(monkeypatch) -> None:
    def _dispatch(*args, **kwargs):  # pragma: no cover
        raise AssertionError("router must not be reached")

    monkeypatch.setattr("blessnet.cli.main.dispatch", _dispatch)


def test_version_skips_every_gate(workspace) -> None:
    rc, out, err = _run(["version"])
    assert rc == 0
    assert out.startswith("Current version: ")
    assert err == ""


def test_short_version_flag_prints_version(workspace) -> None:
    workspace.write_descriptor()
    rc, out, _ = _run(["-v"])
    assert rc == 0
    assert out.startswith("blessnet ")


def test_version_flag_and_subcommand_agree(workspace) -> None:
    _, flag_out, _ = _run(["-v"])
    _, sub_out, _ = _run(["version"])
    assert flag_out.strip().split()[-1] == sub_out.strip().split()[-1]


def test_missing_runtime_decline_exits_one_without_writes(workspace, monkeypatch) -> None:
    calls: list[object] = []
    monkeypatch.setattr(
        "blessnet.cli.main.fetch_and_install_runtime",
        lambda **kwargs: calls.append(kwargs),
    )
    prompt = _ScriptedPrompt("no")

    rc, out, _ = _run(["deploy"], prompt)

    assert rc == 1
    assert prompt.messages == [RUNTIME_PROMPT]
    assert calls == []
    assert not workspace.home.exists()
    assert not (workspace.project / "bls.toml").exists()


def test_missing_runtime_accept_installs_and_exits(workspace, monkeypatch) -> None:
    calls: list[dict] = []

    def _install(**kwargs):
        calls.append(kwargs)
        return workspace.home / "bin" / "bls-runtime"

    monkeypatch.setattr("blessnet.cli.main.fetch_and_install_runtime", _install)
    _forbid_router(monkeypatch)

    rc, out, _ = _run([], _ScriptedPrompt("Y"))

    assert rc == 0
    assert "BLESS environment installed successfully." in out
    assert calls[0]["home"] == workspace.home
    assert calls[0]["release_url"].startswith("https://")


def test_missing_runtime_install_failure_exits_one(workspace, monkeypatch) -> None:
    def _install(**kwargs):
        raise RuntimeInstallError("https://example.invalid returned HTTP 404")

    monkeypatch.setattr("blessnet.cli.main.fetch_and_install_runtime", _install)

    rc, out, err = _run(["init", "demo"], _ScriptedPrompt("yes"))

    assert rc == 1
    assert "Failed to download bls-runtime: " in err
    assert "HTTP 404" in err
    assert not (workspace.project / "demo").exists()


def test_init_receives_last_token_as_project_name(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()
    seen: list[str | None] = []

    def _run_init(*, args, context, stdout, stderr):
        seen.append(args.name)
        return 0

    monkeypatch.setattr("blessnet.cli.main._run_init", _run_init)

    assert _run(["init", "my-app"])[0] == 0
    assert _run(["init"])[0] == 0
    assert seen == ["my-app", "init"]


def test_init_creates_named_project_regardless_of_descriptor(workspace) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()

    rc, out, _ = _run(["init", "my-app"])

    assert rc == 0
    assert (workspace.project / "my-app" / "bls.toml").exists()
    assert "Initialized BLESS project my-app" in out


def test_status_report_for_existing_project(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()
    _forbid_router(monkeypatch)

    rc, out, err = _run([])

    assert rc == 0
    assert err == ""
    assert "Project Name" in out
    assert "hello-bless" in out
    assert "Deployment Status: Not Deployed" in out
    assert "blessnet deploy" in out
    assert "logged out" in out
    assert "options account login" in out


def test_status_report_shows_first_deployment(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    workspace.login()
    workspace.write_descriptor(
        "\n[[deployments]]\n"
        'cid = "bafy-first"\n'
        'created = "2024-05-01T12:00:00Z"\n'
        'host = "hello.bls.dev"\n'
        "\n[[deployments]]\n"
        'cid = "bafy-second"\n'
    )
    _forbid_router(monkeypatch)

    rc, out, _ = _run([])

    assert rc == 0
    assert "Deployed" in out
    assert "CID: bafy-first" in out
    assert "bafy-second" not in out
    assert "Web2 Host: https://hello.bls.dev" in out
    assert "logged in" in out


def test_unknown_tokens_fall_through_to_status(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()
    _forbid_router(monkeypatch)

    rc, out, _ = _run(["frobnicate"])
    assert rc == 0
    assert "Project Name" in out


def test_malformed_descriptor_propagates_from_status(workspace) -> None:
    workspace.install_runtime()
    (workspace.project / "bls.toml").write_text("name = [unclosed\n", encoding="utf-8")

    with pytest.raises(DescriptorError):
        _run([])


def test_deploy_with_target_bypasses_status_and_reaches_router(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()
    seen: list[str | None] = []

    def _run_deploy(*, args, context, config, stdout, stderr):
        seen.append(args.target)
        return 0

    monkeypatch.setattr("blessnet.cli.main._run_deploy", _run_deploy)

    rc, out, _ = _run(["deploy", "mytarget"])

    assert rc == 0
    assert seen == ["mytarget"]
    assert "Project Name" not in out


def test_deploy_with_target_skips_init_prompt_without_descriptor(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    monkeypatch.setattr("blessnet.cli.main._run_deploy", lambda **kwargs: 0)

    rc, _, _ = _run(["deploy", "../elsewhere"])
    assert rc == 0


def test_missing_descriptor_prompt_accept_runs_init(workspace, monkeypatch) -> None:
    workspace.install_runtime()
    seen: list[str | None] = []

    def _run_init(*, args, context, stdout, stderr):
        seen.append(args.name)
        return 0

    monkeypatch.setattr("blessnet.cli.main._run_init", _run_init)
    prompt = _ScriptedPrompt("yes")

    rc, _, _ = _run([], prompt)

    assert rc == 0
    assert prompt.messages == [INIT_PROMPT]
    assert seen == [None]


def test_missing_descriptor_prompt_accept_initializes_cwd(workspace) -> None:
    workspace.install_runtime()

    rc, out, _ = _run([], _ScriptedPrompt("y"))

    assert rc == 0
    assert (workspace.project / "bls.toml").exists()
    assert "Initialized BLESS project hello-bless" in out


def test_missing_descriptor_prompt_decline_exits_one(workspace) -> None:
    workspace.install_runtime()

    rc, out, _ = _run(["manage"], _ScriptedPrompt("nope"))

    assert rc == 1
    assert out == ""
    assert not (workspace.project / "bls.toml").exists()


def test_prompt_end_of_input_declines(workspace) -> None:
    workspace.install_runtime()

    def _prompt(message: str) -> str:
        raise EOFError

    rc, _, _ = _run([], _prompt)
    assert rc == 1


def test_help_with_descriptor_prints_banner_and_commands(workspace) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()

    rc, out, _ = _run(["help"])

    assert rc == 0
    assert "To scaffold a new project, run:" in out
    assert "options" in out
    assert "docs.bless.network" in out


def test_help_flag_exits_zero(workspace) -> None:
    workspace.install_runtime()

    rc, out, _ = _run(["--help"])
    assert rc == 0
    assert "usage: blessnet" in out


def test_options_without_subcommand_prints_group_help(workspace) -> None:
    rc, out, _ = _run(["options"])
    assert rc == 0
    assert "wallet" in out
    assert "account" in out
    assert "build" in out


def test_invalid_cli_config_returns_error(workspace) -> None:
    config_path = workspace.project / "cfg.toml"
    config_path.write_text('registry_base = "ftp://nope"\n', encoding="utf-8")

    rc, out, err = _run(["--config", str(config_path), "version"])

    assert rc == 1
    assert out == ""
    assert "config error" in err


def test_usage_error_returns_argparse_code(workspace) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()

    rc, _, err = _run(["preview", "--bogus"])
    assert rc == 2
    assert "unrecognized arguments" in err
