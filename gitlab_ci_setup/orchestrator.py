from typing import Any, Dict, List, Optional, Union

from gitlab_ci_setup.config import ProvisioningConfig
from gitlab_ci_setup.errors import UsageError
from gitlab_ci_setup.gitlab_client import RemoteProjectClient
from gitlab_ci_setup.logging_config import get_logger
from gitlab_ci_setup.steps import Step, run_steps
from gitlab_ci_setup.types import ProjectRef, ProjectSpec, RunResult

_logger = get_logger(__name__)

SHARED_RUNNER_ATTRIBUTES = {"shared_runners_enabled": True, "public_builds": False}

OPERATIONS = ("create", "setupci", "variables", "runner")

ProjectId = Union[ProjectRef, int, str]


class Orchestrator:
    """Runs the provisioning operations against one remote project service.

    Every public operation returns a RunResult. Steps run strictly in order and
    the first failing step ends the operation; nothing is rolled back.
    """

    def __init__(self, client: RemoteProjectClient, config: ProvisioningConfig, progress: bool = True):
        self.client = client
        self.config = config
        self.progress = progress

    # --- step builders ---

    def _variable_step(self, project: ProjectRef, key: str, value: str) -> Step:
        def action():
            _logger.info("Setting project %s variable %s", project, key)
            return self.client.add_project_variable(project, key, value)
        return Step(f"set {key}", action)

    def _variable_steps(self, project: ProjectRef) -> List[Step]:
        return [self._variable_step(project, key, value) for key, value in self.config.variables().items()]

    def _runner_step(self, project: ProjectRef) -> Step:
        def action():
            _logger.info("Enabling shared runners on project %s", project)
            return self.client.update_project(project, dict(SHARED_RUNNER_ATTRIBUTES))
        return Step("enable shared runners", action)

    def _run(self, operation: str, steps: List[Step]) -> RunResult:
        return run_steps(operation, steps, logger=_logger, progress=self.progress)

    # --- operations ---

    def add_variable(self, project: ProjectId, key: str, value: str) -> RunResult:
        project = ProjectRef.of(project)
        return self._run("add variable", [self._variable_step(project, key, value)])

    def set_project_variables(self, project: ProjectId) -> RunResult:
        project = ProjectRef.of(project)
        _logger.info("Setting project variables on project %s", project)
        return self._run("variables", self._variable_steps(project))

    def enable_shared_runners(self, project: ProjectId) -> RunResult:
        project = ProjectRef.of(project)
        return self._run("runner", [self._runner_step(project)])

    def setup_ci(self, project: ProjectId) -> RunResult:
        # runners are only enabled once every build variable is in place
        project = ProjectRef.of(project)
        _logger.info("Setup project %s CI", project)
        return self._run("setupci", self._variable_steps(project) + [self._runner_step(project)])

    def create_and_provision(self, name: str, namespace_id: int) -> RunResult:
        spec = ProjectSpec(name=name, namespace_id=int(namespace_id))

        def create():
            _logger.info("Creating project with name %s and namespace %s", spec.name, spec.namespace_id)
            project = self.client.create_project(spec)
            project.ref()
            return project

        created = self._run("create", [Step("create project", create)])
        if not created.success:
            return created

        project = created.value
        _logger.info("Created project with id %s and url %s", project.id, project.web_url)
        ci = self.setup_ci(project.ref())
        completed = created.completed_steps + ci.completed_steps
        if not ci.success:
            return RunResult.failed("create", ci.failed_step, ci.error, completed, value=project)
        return RunResult.ok("create", ci.value, completed)

    def run(
        self,
        operation: str,
        project_id: Optional[ProjectId] = None,
        name: Optional[str] = None,
        namespace_id: Optional[int] = None,
    ) -> RunResult:
        """Dispatch one of the command-surface operations by name."""
        if operation not in OPERATIONS:
            raise UsageError(f"unknown operation: {operation!r} (expected one of {', '.join(OPERATIONS)})")

        if operation == "create":
            if not (name or "").strip() or namespace_id is None:
                raise UsageError("create requires a project name and a namespace id")
            return self.create_and_provision(name, namespace_id)

        if project_id is None or str(project_id).strip() == "":
            raise UsageError(f"{operation} requires a project id")
        handlers: Dict[str, Any] = {
            "setupci": self.setup_ci,
            "variables": self.set_project_variables,
            "runner": self.enable_shared_runners,
        }
        return handlers[operation](project_id)


__all__ = ["Orchestrator", "OPERATIONS", "SHARED_RUNNER_ATTRIBUTES"]
