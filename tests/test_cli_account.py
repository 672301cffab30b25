from __future__ import annotations

import io
import json
import os
import webbrowser

import pytest

from blessnet.cli.account import AccountError, clear_auth_token, load_auth_token, save_auth_token
from blessnet.cli.main import main


def _run(argv, prompt=None):
    out = io.StringIO()
    err = io.StringIO()
    rc = main(argv, stdout=out, stderr=err, prompt=prompt or (lambda message: ""))
    return rc, out.getvalue(), err.getvalue()


def test_token_round_trip(tmp_path) -> None:
    assert load_auth_token(tmp_path) is None

    path = save_auth_token(tmp_path, "  tok-abc \n")

    assert load_auth_token(tmp_path) == "tok-abc"
    if os.name == "posix":
        assert path.stat().st_mode & 0o777 == 0o600
    assert clear_auth_token(tmp_path) is True
    assert clear_auth_token(tmp_path) is False
    assert load_auth_token(tmp_path) is None


def test_empty_token_is_rejected(tmp_path) -> None:
    with pytest.raises(AccountError):
        save_auth_token(tmp_path, "   ")


def test_login_with_token_flag_then_status(workspace) -> None:
    rc, out, _ = _run(["options", "account", "login", "--token", "tok-xyz"])
    assert rc == 0
    assert "logged in to bless.network" in out
    assert load_auth_token(workspace.home) == "tok-xyz"

    rc, out, _ = _run(["options", "account", "status", "--json"])
    assert rc == 0
    assert json.loads(out)["logged_in"] is True


def test_login_prompts_for_token(workspace) -> None:
    seen: list[str] = []

    def _prompt(message: str) -> str:
        seen.append(message)
        return "tok-pasted"

    rc, out, _ = _run(["options", "account", "login", "--no-browser"], _prompt)

    assert rc == 0
    assert seen == ["Account token: "]
    assert "Log in at https://bless.network/login" in out
    assert load_auth_token(workspace.home) == "tok-pasted"


def test_login_with_blank_answer_fails(workspace) -> None:
    rc, _, err = _run(["options", "account", "login", "--no-browser"])
    assert rc == 1
    assert "account token must not be empty" in err
    assert load_auth_token(workspace.home) is None


def test_logout_removes_token(workspace) -> None:
    workspace.login()

    rc, out, _ = _run(["options", "account", "logout"])
    assert rc == 0
    assert "logged out of bless.network" in out

    rc, out, _ = _run(["options", "account", "logout"])
    assert "already logged out" in out


def test_status_report_reflects_login_state(workspace) -> None:
    workspace.install_runtime()
    workspace.write_descriptor()

    _, logged_out, _ = _run([])
    workspace.login()
    _, logged_in, _ = _run([])

    assert "you are currently logged out" in logged_out
    assert "you are currently logged in" in logged_in


def test_login_reports_unavailable_browser(workspace, monkeypatch) -> None:
    def _open(url, new=0):  # noqa: ANN001
        raise webbrowser.Error("no runnable browser")

    monkeypatch.setattr("blessnet.cli.main.webbrowser.open", _open)

    rc, _, err = _run(["options", "account", "login"], lambda message: "tok-1")

    assert rc == 0
    assert "browser error: no runnable browser" in err
    assert "visit https://bless.network/login?cli=1 to log in" in err
    assert load_auth_token(workspace.home) == "tok-1"


def test_login_hints_url_when_browser_does_not_open(workspace, monkeypatch) -> None:
    monkeypatch.setattr("blessnet.cli.main.webbrowser.open", lambda url, new=0: False)

    rc, _, err = _run(["options", "account", "login"], lambda message: "tok-1")

    assert rc == 0
    assert "Could not open a browser" in err
