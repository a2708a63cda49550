from typing import Optional


class RemoteError(Exception):
    """A remote project-management call failed.

    The orchestrator treats every failure the same way (abort and report), so
    authentication, not-found and transport problems all surface as this type.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: str = ""):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class ConfigError(Exception):
    """Configuration file missing, unreadable or incomplete."""


class UsageError(ValueError):
    """Required parameter missing for the chosen operation."""


__all__ = ["RemoteError", "ConfigError", "UsageError"]
