import json

import pytest

from gitlab_ci_setup.config import ProvisioningConfig
from gitlab_ci_setup.errors import RemoteError
from gitlab_ci_setup.gitlab_client import RemoteProjectClient
from gitlab_ci_setup.types import ProjectResource, VariableResource


class RecordingClient(RemoteProjectClient):
    """Stub client recording every call; `fail_on` maps a call index to an error."""

    def __init__(self, created_id=7, fail_on=None):
        self.calls = []
        self.created_id = created_id
        self.fail_on = dict(fail_on or {})

    def _record(self, call):
        self.calls.append(call)
        err = self.fail_on.get(len(self.calls))
        if err is not None:
            raise err

    def create_project(self, spec):
        self._record(("create_project", spec.name, spec.namespace_id))
        return ProjectResource(id=self.created_id, name=spec.name, web_url=f"https://git.example/{spec.name}")

    def update_project(self, project, attribute_changes):
        self._record(("update_project", str(project), dict(attribute_changes)))
        return ProjectResource(id=int(str(project)), shared_runners_enabled=True, public_builds=False)

    def add_project_variable(self, project, key, value):
        self._record(("add_variable", str(project), key, value))
        return VariableResource(key=key, value=value)


@pytest.fixture
def cfg():
    return ProvisioningConfig(
        host="https://gitlab.example",
        api_path="/api/v3",
        token="secret-token",
        publishing_base_url="https://x",
        publishing_login="u",
        publishing_password="p",
        flowdock_source_token="t",
    )


@pytest.fixture
def client():
    return RecordingClient()


@pytest.fixture
def remote_error():
    return RemoteError("401 Unauthorized", status_code=401)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "host": "https://gitlab.example",
        "api_path": "/api/v4",
        "token": "file-token",
        "publishing_base_url": "https://x",
        "publishing_login": "u",
        "publishing_password": "p",
        "flowdock_source_token": "t",
    }), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_gitlab_env(monkeypatch):
    for name in ("GITLAB_HOST", "GITLAB_API_PATH", "GITLAB_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    # keep load_dotenv from picking up a developer's .env
    monkeypatch.setattr("gitlab_ci_setup.config.load_dotenv", lambda *a, **k: False)


@pytest.fixture
def make_client():
    return RecordingClient
