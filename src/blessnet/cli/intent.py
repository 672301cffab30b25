"""Classify an invocation before the full argument parser runs.

Classification only looks at which keyword tokens are present. It never
touches the filesystem and never fails: tokens that match no keyword leave
every flag unset, which routes the invocation to the project status / init
prompt path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

VERSION_TOKENS = frozenset({"version", "-v"})
HELP_TOKENS = frozenset({"help", "-h", "--help"})


@dataclass(frozen=True)
class IntentClassification:
    is_version: bool = False
    is_help: bool = False
    is_options: bool = False
    is_build: bool = False
    is_init: bool = False
    is_preview: bool = False
    is_manage: bool = False
    is_deploy: bool = False
    has_deploy_target: bool = False
    is_registry: bool = False

    @property
    def skips_runtime_check(self) -> bool:
        return self.is_version or self.is_options or self.is_build

    @property
    def wants_subcommand(self) -> bool:
        return self.is_help or self.is_preview or self.is_manage or self.is_deploy


def _has_positional_after(tokens: Sequence[str], keyword: str) -> bool:
    """True when any token after the first ``keyword`` does not start with ``-``.

    Option values are not told apart from positionals, so ``deploy --path x``
    counts ``x`` as a target.
    """
    index = list(tokens).index(keyword)
    return any(not token.startswith("-") for token in tokens[index + 1 :])


def classify_intent(argv: Sequence[str]) -> IntentClassification:
    tokens = tuple(argv)
    present = set(tokens)
    is_deploy = "deploy" in present
    return IntentClassification(
        is_version=bool(present & VERSION_TOKENS),
        is_help=bool(present & HELP_TOKENS),
        is_options="options" in present,
        is_build="build" in present,
        is_init="init" in present,
        is_preview="preview" in present,
        is_manage="manage" in present,
        is_deploy=is_deploy,
        has_deploy_target=is_deploy and _has_positional_after(tokens, "deploy"),
        is_registry="registry" in present,
    )
