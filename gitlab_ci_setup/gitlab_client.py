from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from gitlab_ci_setup.errors import RemoteError
from gitlab_ci_setup.logging_config import get_logger
from gitlab_ci_setup.types import ProjectRef, ProjectResource, ProjectSpec, VariableResource

_logger = get_logger(__name__)

# Status codes GitLab uses when a variable key is already defined on a project.
_DUPLICATE_KEY_STATUS_CODES = frozenset({400, 409})


class RemoteProjectClient(ABC):
    """Mutations the provisioning workflow needs from the project service."""

    @abstractmethod
    def create_project(self, spec: ProjectSpec) -> ProjectResource:
        """Create a project and return the freshly allocated resource."""
        raise NotImplementedError

    @abstractmethod
    def update_project(self, project: ProjectRef, attribute_changes: Dict[str, Any]) -> ProjectResource:
        """Apply a partial attribute update; unspecified attributes stay as they are."""
        raise NotImplementedError

    @abstractmethod
    def add_project_variable(self, project: ProjectRef, key: str, value: str) -> VariableResource:
        """Set a CI variable on the project, overwriting an existing key."""
        raise NotImplementedError


class GitlabClient(RemoteProjectClient):
    """RemoteProjectClient implementation for the GitLab REST API."""

    def __init__(
        self,
        host: str,
        api_path: str,
        token: str,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 30.0,
    ):
        if not host:
            raise ValueError("host is required")
        if not token:
            raise ValueError("token is required")
        self.base_url = host.rstrip("/") + "/" + (api_path or "").strip("/")
        self.base_url = self.base_url.rstrip("/")
        self._token = token
        self._session = session or requests.Session()
        self._timeout = float(timeout_seconds)

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> "GitlabClient":
        return cls(config.host, config.api_path, config.token, session=session)

    def _headers(self) -> Dict[str, str]:
        return {"PRIVATE-TOKEN": self._token, "Accept": "application/json"}

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        body = resp.text or ""
        message = body[:200] if body else f"HTTP {resp.status_code}"
        try:
            payload = resp.json()
        except ValueError:
            return message
        if isinstance(payload, dict):
            detail = payload.get("message", payload.get("error", message))
            message = detail if isinstance(detail, str) else str(detail)
        return message

    def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        _logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, headers=self._headers(), json=data, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteError(f"{method} {url} failed: {e}") from e
        if resp.status_code >= 400:
            raise RemoteError(
                f"{method} {url} returned HTTP {resp.status_code}: {self._error_message(resp)}",
                status_code=resp.status_code,
                response_body=resp.text or "",
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as e:
            raise RemoteError(f"invalid JSON in response from {resp.url}") from e
        if not isinstance(payload, dict):
            raise RemoteError(f"unexpected response from {resp.url}: {payload!r}")
        return payload

    def create_project(self, spec: ProjectSpec) -> ProjectResource:
        resp = self._request("POST", "/projects", spec.to_payload())
        return ProjectResource.from_dict(self._json(resp))

    def update_project(self, project: ProjectRef, attribute_changes: Dict[str, Any]) -> ProjectResource:
        resp = self._request("PUT", f"/projects/{quote(str(project), safe='')}", dict(attribute_changes))
        return ProjectResource.from_dict(self._json(resp))

    def add_project_variable(self, project: ProjectRef, key: str, value: str) -> VariableResource:
        project_path = f"/projects/{quote(str(project), safe='')}/variables"
        try:
            resp = self._request("POST", project_path, {"key": key, "value": value})
        except RemoteError as e:
            if e.status_code not in _DUPLICATE_KEY_STATUS_CODES or "taken" not in e.response_body:
                raise
            _logger.info("variable %s already exists on project %s, updating it", key, project)
            resp = self._request("PUT", f"{project_path}/{quote(key, safe='')}", {"value": value})
        return VariableResource.from_dict(self._json(resp))


__all__ = ["RemoteProjectClient", "GitlabClient"]
