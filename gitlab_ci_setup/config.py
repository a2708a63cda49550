import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from dotenv import load_dotenv

from gitlab_ci_setup.errors import ConfigError
from gitlab_ci_setup.logging_config import get_logger

_logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_API_PATH = "/api/v3"

# Remote CI variable key -> config attribute, in the order they are applied.
VARIABLE_FIELDS = (
    ("ORG_GRADLE_PROJECT_publishingBaseUrl", "publishing_base_url"),
    ("ORG_GRADLE_PROJECT_publishingLogin", "publishing_login"),
    ("ORG_GRADLE_PROJECT_publishingPassword", "publishing_password"),
    ("FLOWDOCK_SOURCE_TOKEN", "flowdock_source_token"),
)

# camelCase spellings accepted alongside the snake_case keys of config.json
_ALIASES = {
    "apiPath": "api_path",
    "publishingBaseUrl": "publishing_base_url",
    "publishingLogin": "publishing_login",
    "publishingPassword": "publishing_password",
    "flowdockSourceToken": "flowdock_source_token",
}

_ENV_OVERRIDES = {
    "GITLAB_HOST": "host",
    "GITLAB_API_PATH": "api_path",
    "GITLAB_TOKEN": "token",
}

_SECRET_FIELDS = ("token", "publishing_password", "flowdock_source_token")


@dataclass(frozen=True)
class ProvisioningConfig:
    host: str
    token: str
    publishing_base_url: str
    publishing_login: str
    publishing_password: str
    flowdock_source_token: str
    api_path: str = DEFAULT_API_PATH

    def variables(self) -> Dict[str, str]:
        """Remote variable key -> value, in application order."""
        return {key: getattr(self, attr) for key, attr in VARIABLE_FIELDS}

    def redacted(self) -> Dict[str, str]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = "***" if f.name in _SECRET_FIELDS and value else value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProvisioningConfig":
        if not isinstance(data, dict):
            raise ConfigError(f"configuration must be a mapping, got {type(data).__name__}")
        normalized = {_ALIASES.get(k, k): v for k, v in data.items()}
        known = {f.name for f in fields(cls)}
        values = {}
        missing = []
        for name in known:
            value = normalized.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                if name == "api_path":
                    continue
                missing.append(name)
                continue
            values[name] = str(value)
        if missing:
            raise ConfigError(f"missing config key(s): {', '.join(sorted(missing))}")
        return cls(**values)


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Config file error: {e}") from e
    try:
        if path.suffix.lower() in (".yml", ".yaml"):
            return yaml.safe_load(text) or {}
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH, use_env: bool = True) -> ProvisioningConfig:
    """
    Load the provisioning configuration from a JSON or YAML file.

    When `use_env` is set, a `.env` file is loaded and GITLAB_HOST,
    GITLAB_API_PATH and GITLAB_TOKEN override the file values.
    Raises ConfigError when the file is missing, unparseable or incomplete.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    data = _read_file(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    if use_env:
        load_dotenv()
        data = dict(data)
        for env_name, attr in _ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                data[attr] = value
                for alias, target in _ALIASES.items():
                    if target == attr:
                        data.pop(alias, None)

    config = ProvisioningConfig.from_dict(data)
    _logger.info("Loaded configuration from %s: %s", path, config.redacted())
    return config


__all__ = ["ProvisioningConfig", "load_config", "VARIABLE_FIELDS", "DEFAULT_CONFIG_PATH"]
