import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from tqdm import tqdm

from gitlab_ci_setup.errors import RemoteError
from gitlab_ci_setup.logging_config import get_logger
from gitlab_ci_setup.types import RunResult

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Step:
    """A named, fallible remote mutation."""
    name: str
    action: Callable[[], Any]


def run_steps(
    operation: str,
    steps: Iterable[Step],
    logger: Optional[logging.Logger] = None,
    progress: bool = True,
) -> RunResult:
    """
    Execute steps sequentially and stop at the first RemoteError.

    The failing error is logged once here and returned as-is on the result;
    steps already applied remotely are left in place. The value of the last
    step is the result value on success.
    """
    logger = logger or _logger
    steps = list(steps)
    completed: List[str] = []
    value = None

    for step in tqdm(steps, desc=operation, unit="step", leave=False, disable=not progress):
        try:
            value = step.action()
        except RemoteError as e:
            logger.error("%s: step '%s' failed: %s", operation, step.name, e)
            return RunResult.failed(operation, step.name, e, completed)
        completed.append(step.name)

    logger.info("%s finished (%d steps)", operation, len(completed))
    return RunResult.ok(operation, value, completed)


__all__ = ["Step", "run_steps"]
