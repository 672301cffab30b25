"""Error types shared by the blessnet client and CLI."""

from __future__ import annotations


class BlessnetError(RuntimeError):
    """Base blessnet error."""


class RegistryUnavailableError(BlessnetError):
    """Registry could not be reached."""


class RegistryRequestError(RegistryUnavailableError):
    """Registry returned a structured HTTP error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: object | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.body = body


class RuntimeInstallError(BlessnetError):
    """The bls-runtime binary could not be downloaded or installed."""
