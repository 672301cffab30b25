"""Command-line interface for blessnet."""

from __future__ import annotations

import argparse
import base64
import dataclasses
import hashlib
import io
import json
import re
import sys
import webbrowser
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Sequence

from rich.console import Console

from blessnet.cli.account import AccountError, clear_auth_token, load_auth_token, save_auth_token
from blessnet.cli.config import CLIConfig, ConfigError, load_cli_config
from blessnet.cli.context import InvocationContext, probe_environment
from blessnet.cli.descriptor import (
    DESCRIPTOR_FILENAME,
    Deployment,
    DescriptorError,
    descriptor_from_table,
    load_project_descriptor,
    save_project_descriptor,
)
from blessnet.cli.gates import (
    EXIT_DECLINED,
    EXIT_INSTALL_FAILED,
    EXIT_NETWORK_ERROR,
    EXIT_SUCCESS,
    EXIT_TOOL_ERROR,
    EXIT_VALIDATION_ERROR,
    INIT_PROMPT,
    RUNTIME_PROMPT,
    Dispatch,
    ExitDecision,
    GateOutcome,
    PromptFn,
    console_prompt,
    init_gate_applies,
    run_gate,
    runtime_gate_applies,
    status_report_applies,
)
from blessnet.cli.intent import IntentClassification, classify_intent
from blessnet.cli.project import (
    ProjectError,
    artifact_path,
    normalize_project_name,
    run_build,
    run_preview,
    scaffold_project,
)
from blessnet.cli.receipts import ReceiptError, is_safe_cid, save_deploy_receipt
from blessnet.cli.render import help_banner, help_epilog, make_console
from blessnet.cli.status import format_created, report_project_status
from blessnet.cli.wallet import (
    DEFAULT_WALLET_NAME,
    WalletError,
    create_wallet,
    list_wallets,
    load_wallet,
)
from blessnet.client import RegistryClient
from blessnet.errors import RegistryRequestError, RegistryUnavailableError, RuntimeInstallError
from blessnet.runtime import fetch_and_install_runtime

_SENSITIVE_FIELDS = (
    "private_key_b64",
    "auth_token",
    "token",
    "authorization",
    "secret",
    "api_key",
)


def _sdk_version() -> str:
    try:
        return pkg_version("blessnet")
    except PackageNotFoundError:
        return "0.0.0+local"


class _BlessnetParser(argparse.ArgumentParser):
    banner: str | None = None

    def format_help(self) -> str:
        text = super().format_help()
        if self.banner:
            return f"{self.banner}\n{text}"
        return text


def _build_parser(*, is_logged_in: bool = False, docs_url: str = "") -> argparse.ArgumentParser:
    parser = _BlessnetParser(
        prog="blessnet",
        description="Build, preview and deploy projects on the BLESS network.",
        epilog=help_epilog(is_logged_in=is_logged_in, docs_url=docs_url) if docs_url else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.banner = help_banner()
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"blessnet {_sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.blessnet/config.toml)",
    )

    sub = parser.add_subparsers(dest="command")

    init = sub.add_parser("init", help="Scaffold a new BLESS project")
    init.add_argument(
        "name",
        nargs="?",
        default=None,
        help="Project name; a directory of that name is created (default: current directory)",
    )
    init.add_argument("--json", action="store_true", help="Print scaffold details as JSON")

    preview = sub.add_parser("preview", help="Run the built project with the local runtime")
    preview.add_argument("mode", nargs="?", choices=["serve"], default=None)
    preview.add_argument("--path", default=None, help="Project directory (default: cwd)")
    preview.add_argument("--release", action="store_true", help="Preview the release build")

    manage = sub.add_parser("manage", help="Show or change project settings in bls.toml")
    manage.add_argument("--name", default=None, help="New project name")
    manage.add_argument("--set-version", default=None, help="New project version")
    manage.add_argument("--type", default=None, help="New project type")
    manage.add_argument("--content-type", default=None, help="New content type")
    manage.add_argument("--json", action="store_true")

    deploy = sub.add_parser("deploy", help="Deploy a built project to the BLESS network")
    deploy.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Project directory to deploy (default: current directory)",
    )
    deploy.add_argument("--release", action="store_true", help="Deploy the release build")
    deploy.add_argument("--json", action="store_true")

    registry = sub.add_parser("registry", help="Inspect the BLESS registry")
    registry.set_defaults(help_parser=registry)
    registry_sub = registry.add_subparsers(dest="registry_command")
    registry_check = registry_sub.add_parser(
        "check", help="Validate registry reachability and login state"
    )
    registry_check.add_argument("--json", action="store_true")
    registry_status = registry_sub.add_parser("status", help="Show registry status for a deployment")
    registry_status.add_argument(
        "cid",
        nargs="?",
        default=None,
        help="Deployment CID (default: latest deployment in bls.toml)",
    )
    registry_status.add_argument("--json", action="store_true")

    sub.add_parser("version", help="Show the current version")
    sub.add_parser("help", help="Show this help message")

    options = sub.add_parser("options", help="Wallet, account and build options")
    options.set_defaults(help_parser=options)
    options_sub = options.add_subparsers(dest="options_command")

    wallet = options_sub.add_parser("wallet", help="Manage local wallets")
    wallet.set_defaults(help_parser=wallet)
    wallet_sub = wallet.add_subparsers(dest="wallet_command")
    wallet_create = wallet_sub.add_parser("create", help="Create a new local wallet")
    wallet_create.add_argument("--name", default=DEFAULT_WALLET_NAME)
    wallet_create.add_argument("--json", action="store_true")
    wallet_list = wallet_sub.add_parser("list", help="List local wallets")
    wallet_list.add_argument("--json", action="store_true")
    wallet_show = wallet_sub.add_parser("show", help="Show a local wallet")
    wallet_show.add_argument("--name", default=DEFAULT_WALLET_NAME)
    wallet_show.add_argument(
        "--export-private-key",
        action="store_true",
        help="Include private_key_b64 in JSON output (sensitive; avoid in shared logs)",
    )
    wallet_show.add_argument("--json", action="store_true")

    account = options_sub.add_parser("account", help="Log in to or out of bless.network")
    account.set_defaults(help_parser=account)
    account_sub = account.add_subparsers(dest="account_command")
    account_login = account_sub.add_parser("login", help="Store an account token")
    account_login.add_argument("--token", default=None, help="Account token to store")
    account_login.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open the login page in a browser",
    )
    account_sub.add_parser("logout", help="Remove the stored account token")
    account_status = account_sub.add_parser("status", help="Show login state")
    account_status.add_argument("--json", action="store_true")

    build = options_sub.add_parser("build", help="Build the project with its configured command")
    build.add_argument("--path", default=None, help="Project directory (default: cwd)")
    build.add_argument("--release", action="store_true", help="Use the [build_release] settings")

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(r"(?i)(bearer\s+)(\S+)", r"\1[REDACTED]", redacted)
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _print_registry_request_error(stderr, exc: RegistryRequestError, *, code: int) -> int:
    if exc.status_code == 401:
        return _print_error(
            stderr,
            "registry error",
            (
                "the registry rejected the stored account token. Run "
                "`npx blessnet options account login` to log in again."
            ),
            code=code,
        )
    return _print_error(stderr, "registry error", str(exc), code=code)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _resolve_project_dir(context: InvocationContext, raw: str | None) -> Path:
    if not raw:
        return context.cwd
    path = Path(raw).expanduser()
    return path if path.is_absolute() else context.cwd / path


def _coming_soon(*, path: str, stdout) -> int:
    print(f"{path}: coming soon", file=stdout)
    return EXIT_VALIDATION_ERROR


def _print_help(parser: argparse.ArgumentParser, stdout) -> int:
    print(parser.format_help(), file=stdout, end="")
    return EXIT_SUCCESS


def _run_version(*, stdout) -> int:
    print(f"Current version: {_sdk_version()}", file=stdout)
    return EXIT_SUCCESS


def _run_init(*, args, context: InvocationContext, stdout, stderr) -> int:
    try:
        if args.name:
            name = normalize_project_name(args.name)
            target = context.cwd / name
        else:
            name = normalize_project_name(context.cwd.name)
            target = context.cwd
        _, written = scaffold_project(target, name)
    except ProjectError as exc:
        return _print_error(stderr, "init error", str(exc), code=EXIT_VALIDATION_ERROR)

    payload = {
        "name": name,
        "project_dir": str(target),
        "files": [str(path) for path in written],
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"Initialized BLESS project {name} in {target}", file=stdout)
    for path in written:
        print(f"  created {path.relative_to(target)}", file=stdout)
    print("Next steps:", file=stdout)
    if target != context.cwd:
        print(f"  cd {name}", file=stdout)
    print("  npx blessnet options build", file=stdout)
    print("  npx blessnet preview", file=stdout)
    return EXIT_SUCCESS


def _run_build(*, args, context: InvocationContext, stdout, stderr) -> int:
    project_dir = _resolve_project_dir(context, args.path)
    try:
        descriptor = load_project_descriptor(project_dir, DESCRIPTOR_FILENAME)
    except DescriptorError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        returncode = run_build(project_dir, descriptor, release=args.release)
        artifact = artifact_path(project_dir, descriptor, release=args.release)
    except ProjectError as exc:
        return _print_error(stderr, "build error", str(exc), code=EXIT_VALIDATION_ERROR)
    if returncode != 0:
        return _print_error(
            stderr,
            "build error",
            f"build command exited with status {returncode}",
            code=EXIT_TOOL_ERROR,
        )

    print(f"build: {'release' if args.release else 'debug'}", file=stdout)
    print(f"artifact: {artifact}", file=stdout)
    return EXIT_SUCCESS


def _run_preview(*, args, context: InvocationContext, stdout, stderr) -> int:
    if args.mode == "serve":
        return _coming_soon(path="preview serve", stdout=stdout)
    if not context.has_runtime:
        return _print_error(
            stderr,
            "runtime error",
            f"bls-runtime not found at {context.runtime_path}; run `blessnet` to install it",
            code=EXIT_VALIDATION_ERROR,
        )

    project_dir = _resolve_project_dir(context, args.path)
    try:
        descriptor = load_project_descriptor(project_dir, DESCRIPTOR_FILENAME)
    except DescriptorError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        artifact = artifact_path(project_dir, descriptor, release=args.release)
        returncode = run_preview(context.runtime_path, artifact)
    except ProjectError as exc:
        return _print_error(stderr, "preview error", str(exc), code=EXIT_VALIDATION_ERROR)
    if returncode != 0:
        return _print_error(
            stderr,
            "preview error",
            f"bls-runtime exited with status {returncode}",
            code=EXIT_TOOL_ERROR,
        )
    return EXIT_SUCCESS


def _run_manage(*, args, context: InvocationContext, stdout, stderr) -> int:
    try:
        descriptor = load_project_descriptor(context.cwd, DESCRIPTOR_FILENAME)
    except DescriptorError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    requested = {
        "name": args.name,
        "version": args.set_version,
        "type": args.type,
        "content_type": args.content_type,
    }
    updates: dict[str, str] = {}
    for key, value in requested.items():
        if value is None:
            continue
        value = value.strip()
        if not value:
            return _print_error(
                stderr,
                "manage error",
                f"{key} must not be empty",
                code=EXIT_VALIDATION_ERROR,
            )
        updates[key] = value

    if updates:
        table = descriptor.to_table()
        table.update(updates)
        descriptor = descriptor_from_table(table)
        save_project_descriptor(context.cwd, descriptor)

    payload = {
        "name": descriptor.name,
        "version": descriptor.version,
        "type": descriptor.type,
        "content_type": descriptor.content_type,
        "deployments": len(descriptor.deployments),
        "updated": sorted(updates),
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"name: {payload['name']}", file=stdout)
    print(f"version: {payload['version']}", file=stdout)
    print(f"type: {payload['type']}", file=stdout)
    print(f"content_type: {payload['content_type']}", file=stdout)
    print(f"deployments: {payload['deployments']}", file=stdout)
    if updates:
        print(f"updated: {', '.join(payload['updated'])}", file=stdout)
    return EXIT_SUCCESS


def _run_deploy(*, args, context: InvocationContext, config: CLIConfig, stdout, stderr) -> int:
    try:
        token = load_auth_token(context.home)
    except AccountError as exc:
        return _print_error(stderr, "account error", str(exc), code=EXIT_VALIDATION_ERROR)
    if not token:
        return _print_error(
            stderr,
            "account error",
            "not logged in; run `npx blessnet options account login` first",
            code=EXIT_VALIDATION_ERROR,
        )

    project_dir = _resolve_project_dir(context, args.target)
    try:
        descriptor = load_project_descriptor(project_dir, DESCRIPTOR_FILENAME)
    except DescriptorError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        artifact = artifact_path(project_dir, descriptor, release=args.release)
    except ProjectError as exc:
        return _print_error(stderr, "deploy error", str(exc), code=EXIT_VALIDATION_ERROR)
    if not artifact.is_file():
        return _print_error(
            stderr,
            "deploy error",
            f"build artifact not found: {artifact} (run `npx blessnet options build`)",
            code=EXIT_VALIDATION_ERROR,
        )

    artifact_bytes = artifact.read_bytes()
    request_payload = {
        "name": descriptor.name,
        "version": descriptor.version,
        "type": descriptor.type,
        "content_type": descriptor.content_type,
        "deployment": descriptor.raw.get("deployment", {}),
        "artifact_name": artifact.name,
        "artifact_sha256": hashlib.sha256(artifact_bytes).hexdigest(),
        "artifact_b64": base64.b64encode(artifact_bytes).decode("ascii"),
    }

    client = RegistryClient(base_url=config.registry_base, auth_token=token)
    try:
        result = client.submit_deployment(request_payload)
    except RegistryRequestError as exc:
        return _print_registry_request_error(stderr, exc, code=EXIT_NETWORK_ERROR)
    except RegistryUnavailableError as exc:
        return _print_error(stderr, "registry error", str(exc), code=EXIT_NETWORK_ERROR)

    cid = result.get("cid")
    if not isinstance(cid, str) or not cid.strip():
        return _print_error(
            stderr,
            "registry error",
            "registry response is missing a cid",
            code=EXIT_NETWORK_ERROR,
        )
    if not is_safe_cid(cid.strip()):
        return _print_error(
            stderr,
            "registry error",
            f"registry returned an invalid cid: {cid!r}",
            code=EXIT_NETWORK_ERROR,
        )
    host = result.get("host")
    deployment = Deployment(
        cid=cid.strip(),
        created=result.get("created") or _utc_now_iso(),
        host=host.strip() or None if isinstance(host, str) else None,
    )

    # Receipt first: bls.toml only records deployments that have a receipt.
    receipt = {key: value for key, value in request_payload.items() if key != "artifact_b64"}
    receipt["registry_base"] = config.registry_base
    receipt["response"] = result
    try:
        receipt_path = save_deploy_receipt(home=context.home, cid=deployment.cid, payload=receipt)
    except ReceiptError as exc:
        return _print_error(stderr, "receipt error", str(exc), code=EXIT_VALIDATION_ERROR)

    descriptor = dataclasses.replace(
        descriptor,
        deployments=(deployment,) + descriptor.deployments,
    )
    descriptor_file = save_project_descriptor(project_dir, descriptor)

    payload = {
        "cid": deployment.cid,
        "created": deployment.created,
        "host": deployment.host,
        "descriptor_file": str(descriptor_file),
        "receipt_file": str(receipt_path),
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True, default=str), file=stdout)
        return EXIT_SUCCESS

    print(f"cid: {payload['cid']}", file=stdout)
    print(f"created: {format_created(deployment.created)}", file=stdout)
    if deployment.host:
        print(f"host: https://{deployment.host}", file=stdout)
    print(f"descriptor_file: {payload['descriptor_file']}", file=stdout)
    print(f"receipt_file: {payload['receipt_file']}", file=stdout)
    return EXIT_SUCCESS


def _run_registry_check(*, args, context: InvocationContext, config: CLIConfig, stdout) -> int:
    client = RegistryClient(base_url=config.registry_base)
    registry_info = None
    registry_error = None
    try:
        registry_info = client.get_registry_info()
    except (RegistryRequestError, RegistryUnavailableError) as exc:
        registry_error = _sanitize_error_text(str(exc))

    warnings: list[str] = []
    next_actions: list[str] = []
    if registry_error:
        warnings.append(f"registry lookup unavailable: {registry_error}")
        next_actions.append("verify the registry base URL and network reachability")
    if not context.is_logged_in:
        next_actions.append("run `npx blessnet options account login` before deploying")
    if not context.has_runtime:
        next_actions.append("run `blessnet` to install the BLESS environment")

    payload = {
        "registry_base": config.registry_base,
        "registry_reachable": registry_info is not None,
        "registry_version": registry_info.get("version") if registry_info else None,
        "logged_in": context.is_logged_in,
        "runtime_installed": context.has_runtime,
        "warnings": warnings,
        "next_actions": next_actions,
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"registry_base: {payload['registry_base']}", file=stdout)
    print(f"registry_reachable: {payload['registry_reachable']}", file=stdout)
    print(f"registry_version: {payload['registry_version']}", file=stdout)
    print(f"logged_in: {payload['logged_in']}", file=stdout)
    print(f"runtime_installed: {payload['runtime_installed']}", file=stdout)
    if warnings:
        print(f"warnings: {' | '.join(warnings)}", file=stdout)
    if next_actions:
        print(f"next_actions: {' | '.join(next_actions)}", file=stdout)
    return EXIT_SUCCESS


def _run_registry_status(
    *, args, context: InvocationContext, config: CLIConfig, stdout, stderr
) -> int:
    cid = args.cid
    if not cid:
        try:
            descriptor = load_project_descriptor(context.cwd, DESCRIPTOR_FILENAME)
        except DescriptorError as exc:
            return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)
        if not descriptor.deployments:
            return _print_error(
                stderr,
                "registry error",
                "no cid given and no deployments recorded in bls.toml",
                code=EXIT_VALIDATION_ERROR,
            )
        cid = descriptor.deployments[0].cid

    try:
        token = load_auth_token(context.home)
    except AccountError:
        token = None
    client = RegistryClient(base_url=config.registry_base, auth_token=token)
    try:
        status = client.get_deployment(cid)
    except RegistryRequestError as exc:
        return _print_registry_request_error(stderr, exc, code=EXIT_NETWORK_ERROR)
    except RegistryUnavailableError as exc:
        return _print_error(stderr, "registry error", str(exc), code=EXIT_NETWORK_ERROR)

    payload = {
        "cid": cid,
        "registry_base": config.registry_base,
        "status": status.get("status"),
        "host": status.get("host"),
        "created": status.get("created"),
        "nodes": status.get("nodes"),
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"cid: {payload['cid']}", file=stdout)
    print(f"registry_base: {payload['registry_base']}", file=stdout)
    print(f"status: {payload['status']}", file=stdout)
    print(f"host: {payload['host']}", file=stdout)
    print(f"created: {payload['created']}", file=stdout)
    print(f"nodes: {payload['nodes']}", file=stdout)
    return EXIT_SUCCESS


def _wallet_payload(wallet, path: Path) -> dict:
    return {
        "name": wallet.name,
        "address": wallet.address,
        "public_key_b64": wallet.public_key_b64,
        "wallet_file": str(path),
    }


def _run_wallet_create(*, args, context: InvocationContext, stdout, stderr) -> int:
    try:
        wallet, path = create_wallet(context.home, args.name)
    except WalletError as exc:
        return _print_error(stderr, "wallet error", str(exc), code=EXIT_VALIDATION_ERROR)

    payload = _wallet_payload(wallet, path)
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS
    print(f"name: {payload['name']}", file=stdout)
    print(f"address: {payload['address']}", file=stdout)
    print(f"public_key_b64: {payload['public_key_b64']}", file=stdout)
    print(f"wallet_file: {payload['wallet_file']}", file=stdout)
    return EXIT_SUCCESS


def _run_wallet_list(*, args, context: InvocationContext, stdout, stderr) -> int:
    try:
        wallets = list_wallets(context.home)
    except WalletError as exc:
        return _print_error(stderr, "wallet error", str(exc), code=EXIT_VALIDATION_ERROR)

    if args.json:
        payload = [{"name": w.name, "address": w.address} for w in wallets]
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS
    if not wallets:
        print("no wallets found; run `npx blessnet options wallet create`", file=stdout)
        return EXIT_SUCCESS
    for wallet in wallets:
        print(f"{wallet.name}: {wallet.address}", file=stdout)
    return EXIT_SUCCESS


def _run_wallet_show(*, args, context: InvocationContext, stdout, stderr) -> int:
    try:
        wallet, path = load_wallet(context.home, args.name)
    except WalletError as exc:
        return _print_error(stderr, "wallet error", str(exc), code=EXIT_VALIDATION_ERROR)

    payload = _wallet_payload(wallet, path)
    if args.export_private_key:
        payload["private_key_b64"] = wallet.private_key_b64
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS
    print(f"name: {payload['name']}", file=stdout)
    print(f"address: {payload['address']}", file=stdout)
    print(f"public_key_b64: {payload['public_key_b64']}", file=stdout)
    print(f"wallet_file: {payload['wallet_file']}", file=stdout)
    if args.export_private_key:
        print("private_key_b64: [hidden in non-json output]", file=stdout)
    return EXIT_SUCCESS


def _run_account_login(
    *, args, context: InvocationContext, config: CLIConfig, prompt: PromptFn, stdout, stderr
) -> int:
    token = args.token
    if not token:
        print(f"Log in at {config.login_url} and paste the account token below.", file=stdout)
        if not args.no_browser:
            try:
                opened = webbrowser.open(config.login_url, new=2)
            except webbrowser.Error as exc:
                _print_error(stderr, "browser error", str(exc), code=EXIT_VALIDATION_ERROR)
                opened = False
            if not opened:
                print(f"Could not open a browser; visit {config.login_url} to log in.", file=stderr)
        try:
            token = prompt("Account token: ")
        except (EOFError, KeyboardInterrupt):
            token = None
    if not token or not token.strip():
        return _print_error(
            stderr,
            "account error",
            "account token must not be empty",
            code=EXIT_VALIDATION_ERROR,
        )

    try:
        token_path = save_auth_token(context.home, token)
    except AccountError as exc:
        return _print_error(stderr, "account error", str(exc), code=EXIT_VALIDATION_ERROR)
    print("logged in to bless.network", file=stdout)
    print(f"token_file: {token_path}", file=stdout)
    return EXIT_SUCCESS


def _run_account_logout(*, context: InvocationContext, stdout) -> int:
    if clear_auth_token(context.home):
        print("logged out of bless.network", file=stdout)
    else:
        print("already logged out", file=stdout)
    return EXIT_SUCCESS


def _run_account_status(*, args, context: InvocationContext, stdout) -> int:
    payload = {
        "logged_in": context.is_logged_in,
        "token_file": str(context.auth_token_path),
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS
    print(f"logged_in: {str(payload['logged_in']).lower()}", file=stdout)
    print(f"token_file: {payload['token_file']}", file=stdout)
    return EXIT_SUCCESS


def _exit_code(code: object) -> int:
    if code is None:
        return EXIT_SUCCESS
    if isinstance(code, int):
        return code
    return EXIT_VALIDATION_ERROR


def dispatch(
    argv: Sequence[str],
    *,
    context: InvocationContext,
    config: CLIConfig,
    stdout,
    stderr,
    prompt: PromptFn,
) -> int:
    parser = _build_parser(is_logged_in=context.is_logged_in, docs_url=config.docs_url)
    try:
        with redirect_stdout(stdout), redirect_stderr(stderr):
            args = parser.parse_args(list(argv))
    except SystemExit as exc:
        return _exit_code(exc.code)

    if args.command is None or args.command == "help":
        return _print_help(parser, stdout)

    if args.command == "version":
        return _run_version(stdout=stdout)

    if args.command == "init":
        return _run_init(args=args, context=context, stdout=stdout, stderr=stderr)

    if args.command == "preview":
        return _run_preview(args=args, context=context, stdout=stdout, stderr=stderr)

    if args.command == "manage":
        return _run_manage(args=args, context=context, stdout=stdout, stderr=stderr)

    if args.command == "deploy":
        return _run_deploy(args=args, context=context, config=config, stdout=stdout, stderr=stderr)

    if args.command == "registry":
        if args.registry_command == "check":
            return _run_registry_check(args=args, context=context, config=config, stdout=stdout)
        if args.registry_command == "status":
            return _run_registry_status(
                args=args, context=context, config=config, stdout=stdout, stderr=stderr
            )
        return _print_help(args.help_parser, stdout)

    if args.command == "options":
        if args.options_command == "build":
            return _run_build(args=args, context=context, stdout=stdout, stderr=stderr)
        if args.options_command == "wallet":
            if args.wallet_command == "create":
                return _run_wallet_create(args=args, context=context, stdout=stdout, stderr=stderr)
            if args.wallet_command == "list":
                return _run_wallet_list(args=args, context=context, stdout=stdout, stderr=stderr)
            if args.wallet_command == "show":
                return _run_wallet_show(args=args, context=context, stdout=stdout, stderr=stderr)
            return _print_help(args.help_parser, stdout)
        if args.options_command == "account":
            if args.account_command == "login":
                return _run_account_login(
                    args=args,
                    context=context,
                    config=config,
                    prompt=prompt,
                    stdout=stdout,
                    stderr=stderr,
                )
            if args.account_command == "logout":
                return _run_account_logout(context=context, stdout=stdout)
            if args.account_command == "status":
                return _run_account_status(args=args, context=context, stdout=stdout)
            return _print_help(args.help_parser, stdout)
        return _print_help(args.help_parser, stdout)

    print("unknown command", file=stderr)
    return EXIT_VALIDATION_ERROR


def _acquire_runtime(
    context: InvocationContext, *, config: CLIConfig, console: Console, stderr
) -> ExitDecision:
    try:
        fetch_and_install_runtime(home=context.home, release_url=config.runtime_release_url)
    except RuntimeInstallError as exc:
        _print_error(stderr, "Failed to download bls-runtime", str(exc), code=EXIT_INSTALL_FAILED)
        return ExitDecision(EXIT_INSTALL_FAILED, "runtime install failed")

    console.print("BLESS environment installed successfully.")
    console.print("You can now use the `blessnet` command.")
    return ExitDecision(EXIT_SUCCESS, "runtime installed")


def orchestrate(
    context: InvocationContext,
    intent: IntentClassification,
    *,
    config: CLIConfig,
    console: Console,
    stderr,
    prompt: PromptFn,
) -> ExitDecision | Dispatch:
    """Decide what this invocation does before any subcommand parses it.

    Steps run in a fixed order and the first terminal one wins: runtime
    install gate, explicit ``init``, project status summary, init prompt when
    no ``bls.toml`` exists, and finally hand-off to the command router.
    """
    outcome = run_gate(runtime_gate_applies(context, intent), prompt, RUNTIME_PROMPT)
    if outcome is GateOutcome.DECLINED:
        return ExitDecision(EXIT_DECLINED, "runtime install declined")
    if outcome is GateOutcome.CONFIRMED:
        return _acquire_runtime(context, config=config, console=console, stderr=stderr)

    if intent.is_init:
        return Dispatch.of(["init", context.argv[-1]])

    if status_report_applies(context, intent):
        return report_project_status(context, console, docs_url=config.docs_url)

    outcome = run_gate(init_gate_applies(context, intent), prompt, INIT_PROMPT)
    if outcome is GateOutcome.DECLINED:
        return ExitDecision(EXIT_DECLINED, "project init declined")
    if outcome is GateOutcome.CONFIRMED:
        return Dispatch.of(["init"])

    return Dispatch.of(context.argv)


def _config_path(argv: Sequence[str]) -> str | None:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    try:
        with redirect_stderr(io.StringIO()):
            known, _ = pre.parse_known_args(list(argv))
    except SystemExit:
        return None
    return known.config


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    prompt: PromptFn | None = None,
) -> int:
    tokens = list(sys.argv[1:] if argv is None else argv)
    context = probe_environment(tokens)

    try:
        config = load_cli_config(_config_path(tokens))
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    console = make_console(stdout)
    ask = prompt or console_prompt(console)

    decision = orchestrate(
        context,
        classify_intent(tokens),
        config=config,
        console=console,
        stderr=stderr,
        prompt=ask,
    )
    if isinstance(decision, ExitDecision):
        return decision.code
    return dispatch(
        decision.argv,
        context=context,
        config=config,
        stdout=stdout,
        stderr=stderr,
        prompt=ask,
    )


if __name__ == "__main__":
    raise SystemExit(main())
