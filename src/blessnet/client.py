"""Typed client for the BLESS registry API."""

from __future__ import annotations

from dataclasses import dataclass

from blessnet.errors import RegistryRequestError, RegistryUnavailableError


def build_session(retries: int = 2):
    try:
        import requests
        from requests.adapters import HTTPAdapter
        from urllib3.util.retry import Retry
    except Exception as exc:  # pragma: no cover
        raise RegistryUnavailableError(f"requests stack unavailable: {exc}") from exc

    session = requests.Session()
    retry = Retry(
        total=max(0, int(retries)),
        connect=max(0, int(retries)),
        read=max(0, int(retries)),
        status=max(0, int(retries)),
        status_forcelist=(429, 500, 502, 503, 504),
        backoff_factor=0.2,
        allowed_methods=("GET", "POST"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


@dataclass
class RegistryClient:
    base_url: str
    auth_token: str | None = None
    timeout: float = 30.0
    retries: int = 2

    def __post_init__(self) -> None:
        self._session = build_session(self.retries)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, *, json_payload: dict | None = None) -> dict:
        headers = {"Authorization": f"Bearer {self.auth_token}"} if self.auth_token else None
        try:
            response = self._session.request(
                method,
                self._url(path),
                json=json_payload,
                headers=headers,
                timeout=self.timeout,
            )
        except Exception as exc:  # pragma: no cover
            raise RegistryUnavailableError(str(exc)) from exc

        if response.status_code >= 400:
            body: object | None = None
            detail: object | None = None
            try:
                body = response.json()
            except Exception:
                body = None
            if isinstance(body, dict):
                detail = body.get("detail") or body.get("error")
            if isinstance(detail, str):
                message = f"registry request failed: {response.status_code} {detail}"
            else:
                message = f"registry request failed: {response.status_code} {response.text}"
            raise RegistryRequestError(
                message,
                status_code=response.status_code,
                detail=detail,
                body=body,
            )
        try:
            payload = response.json()
        except Exception as exc:
            raise RegistryUnavailableError("registry returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise RegistryUnavailableError("registry returned an unexpected response shape")
        return payload

    def get_registry_info(self) -> dict:
        return self._request("GET", "/v1/registry/info")

    def get_deployment(self, cid: str) -> dict:
        return self._request("GET", f"/v1/deployments/{cid}")

    def submit_deployment(self, payload: dict) -> dict:
        return self._request("POST", "/v1/deployments", json_payload=payload)
