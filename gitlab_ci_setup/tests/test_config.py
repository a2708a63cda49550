import dataclasses
import json

import pytest

from gitlab_ci_setup.config import VARIABLE_FIELDS, ProvisioningConfig, load_config
from gitlab_ci_setup.errors import ConfigError


def test_load_json_config(config_file):
    cfg = load_config(config_file)
    assert cfg.host == "https://gitlab.example"
    assert cfg.api_path == "/api/v4"
    assert list(cfg.variables().items()) == [
        ("ORG_GRADLE_PROJECT_publishingBaseUrl", "https://x"),
        ("ORG_GRADLE_PROJECT_publishingLogin", "u"),
        ("ORG_GRADLE_PROJECT_publishingPassword", "p"),
        ("FLOWDOCK_SOURCE_TOKEN", "t"),
    ]


def test_load_yaml_config_with_camel_case_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "host: https://gitlab.example\n"
        "token: abc\n"
        "publishingBaseUrl: https://x\n"
        "publishingLogin: u\n"
        "publishingPassword: p\n"
        "flowdockSourceToken: t\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.publishing_base_url == "https://x"
    assert cfg.api_path == "/api/v3"


def test_env_overrides_token(config_file, monkeypatch):
    monkeypatch.setenv("GITLAB_TOKEN", "env-token")
    assert load_config(config_file).token == "env-token"
    assert load_config(config_file, use_env=False).token == "file-token"


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")


def test_malformed_json_is_config_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Could not parse"):
        load_config(path)


def test_missing_required_field(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"host": "h", "token": "t"}), encoding="utf-8")
    with pytest.raises(ConfigError, match="publishing_login"):
        load_config(path)


def test_redacted_masks_secrets(cfg):
    red = cfg.redacted()
    assert red["token"] == "***"
    assert red["publishing_password"] == "***"
    assert red["flowdock_source_token"] == "***"
    assert red["publishing_login"] == "u"


def test_config_is_immutable(cfg):
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.token = "other"
    assert isinstance(cfg, ProvisioningConfig)


def test_variable_fields_drive_variables(cfg):
    assert [key for key, _ in VARIABLE_FIELDS] == list(cfg.variables())
    assert [attr for _, attr in VARIABLE_FIELDS] == [
        "publishing_base_url",
        "publishing_login",
        "publishing_password",
        "flowdock_source_token",
    ]
