from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from gitlab_ci_setup.errors import RemoteError


@dataclass(frozen=True)
class ProjectRef:
    """String-encoded identifier of a remote project."""
    id: str

    @classmethod
    def of(cls, value: Union["ProjectRef", int, str]) -> "ProjectRef":
        if isinstance(value, ProjectRef):
            return value
        if isinstance(value, bool) or value is None:
            raise ValueError(f"invalid project id: {value!r}")
        text = str(value).strip()
        if not text:
            raise ValueError("project id must not be empty")
        return cls(id=text)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class ProjectSpec:
    name: str
    namespace_id: int
    merge_requests_enabled: bool = True
    public_builds: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "namespace_id": self.namespace_id,
            "merge_requests_enabled": self.merge_requests_enabled,
            "public_builds": self.public_builds,
        }


@dataclass
class ProjectResource:
    id: int
    name: str = ""
    web_url: str = ""
    shared_runners_enabled: Optional[bool] = None
    public_builds: Optional[bool] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProjectResource":
        if d.get("id") in (None, ""):
            raise RemoteError(f"project response has no id: {d!r}")
        return cls(
            id=d.get("id"),
            name=d.get("name", ""),
            web_url=d.get("web_url", ""),
            shared_runners_enabled=d.get("shared_runners_enabled"),
            public_builds=d.get("public_builds"),
            raw=dict(d),
        )

    def ref(self) -> ProjectRef:
        if self.id in (None, ""):
            raise RemoteError(f"project {self.name!r} has no id")
        return ProjectRef.of(self.id)


@dataclass
class VariableResource:
    key: str
    value: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VariableResource":
        return cls(key=d.get("key", ""), value=d.get("value", ""), raw=dict(d))


@dataclass
class RunResult:
    """Outcome of one composite operation.

    On failure `error` is the exception raised by the remote client, untouched,
    and `failed_step` names the step that raised it.
    """
    operation: str
    success: bool
    value: Any = None
    failed_step: Optional[str] = None
    error: Optional[Exception] = None
    completed_steps: list = field(default_factory=list)

    @classmethod
    def ok(cls, operation: str, value: Any = None, completed_steps: Optional[list] = None) -> "RunResult":
        return cls(operation=operation, success=True, value=value, completed_steps=list(completed_steps or []))

    @classmethod
    def failed(cls, operation: str, failed_step: str, error: Exception,
               completed_steps: Optional[list] = None, value: Any = None) -> "RunResult":
        return cls(
            operation=operation,
            success=False,
            value=value,
            failed_step=failed_step,
            error=error,
            completed_steps=list(completed_steps or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        errors = [f"{self.failed_step}: {self.error}"] if self.error is not None else []
        return {
            "operation": self.operation,
            "success": self.success,
            "completed_steps": list(self.completed_steps),
            "errors": errors,
        }


__all__ = ["ProjectRef", "ProjectSpec", "ProjectResource", "VariableResource", "RunResult"]
