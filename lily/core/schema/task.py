"""Task contract for pluggable content transformations.

A task is a named, parameterized unit of content mutation. Patches bind
directive values to task parameters; the patcher then calls :meth:`Task.apply`
once per target file buffer.

Example::

    class Upper(Task):
        NAME = "upper"

        def run(self, file):
            file.set_modified_content(file.get_modified_content().upper())
            return TaskResult.success()
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Tuple, Union

from lily.core.config import coerce_bool
from lily.core.errors import MissingRequiredParameterError

if TYPE_CHECKING:
    from lily.core.file import FileBuffer
    from lily.core.patcher import Patcher

logger = logging.getLogger(__name__)


class TaskStatus(Enum):
    """Execution status of a task instance."""

    NOT_EXECUTED = "not_executed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class TaskResult:
    """Outcome of a single task application.

    Truthy when the application succeeded, so callers that only care about
    the coarse success/failure signal can treat it as a boolean.

    Attributes:
        ok: Whether the application succeeded
        cause: Human-readable failure reason (None on success)
        error: Exception raised by the task, if any
    """

    ok: bool
    cause: Optional[str] = None
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "TaskResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, cause: str, error: Optional[BaseException] = None) -> "TaskResult":
        return cls(ok=False, cause=cause, error=error)


class Task(ABC):
    """Base class for every task.

    Subclasses declare their identity and parameters as class attributes
    and implement :meth:`run`.

    Attributes:
        NAME: Unique task name used by ``@task <name>`` directives
        REQUIRED_PARAMS: Parameter names that must be bound
        OPTIONAL_PARAMS: Parameter names that may be bound
        params: Declared parameters bound from directives
        extra_params: Directives the task does not declare (kept, ignored)
        arguments: Text following the task name on the ``@task`` line
        files: Optional relative paths restricting the task's targets
    """

    NAME: ClassVar[str] = ""
    REQUIRED_PARAMS: ClassVar[Tuple[str, ...]] = ()
    OPTIONAL_PARAMS: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        params: Optional[Dict[str, str]] = None,
        arguments: str = "",
        files: Optional[List[str]] = None,
        extra_params: Optional[Dict[str, str]] = None,
    ) -> None:
        params = dict(params or {})
        for param in self.REQUIRED_PARAMS:
            if param not in params:
                raise MissingRequiredParameterError(self.get_name(), param)

        self.params = params
        self.extra_params = dict(extra_params or {})
        self.arguments = arguments
        self.files = list(files) if files else None
        self.patcher: Optional["Patcher"] = None
        self.last_result: Optional[TaskResult] = None
        self._status = TaskStatus.NOT_EXECUTED

    @classmethod
    def get_params(cls) -> List[str]:
        """Return required + optional parameter names, order kept, no duplicates."""
        names: List[str] = []
        for param in (*cls.REQUIRED_PARAMS, *cls.OPTIONAL_PARAMS):
            if param not in names:
                names.append(param)
        return names

    def get_name(self) -> str:
        return self.NAME or type(self).__name__

    @property
    def name(self) -> str:
        return self.get_name()

    @property
    def status(self) -> TaskStatus:
        return self._status

    def get_status(self) -> TaskStatus:
        return self._status

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def get_flag(self, name: str, default: bool = False) -> bool:
        """Read a boolean parameter; a bare ``@name`` directive counts as true."""
        if name not in self.params:
            return default
        value = self.params[name]
        if value == "":
            return True
        return coerce_bool(value)

    def has_files(self) -> bool:
        return bool(self.files)

    def get_files(self) -> List[str]:
        return list(self.files or [])

    def apply(self, file: "FileBuffer", patcher: Optional["Patcher"] = None) -> TaskResult:
        """Apply this task to a file buffer.

        Runs :meth:`run`, turns a bare boolean into a TaskResult and an
        exception into a failed TaskResult, then records the status.
        A failed task stays failed.

        Args:
            file: The buffer to mutate in place
            patcher: The orchestrating patcher (lets the task call ``stop()``)

        Returns:
            TaskResult of this application
        """
        if patcher is not None:
            self.patcher = patcher

        try:
            outcome = self.run(file)
        except Exception as e:
            logger.exception(f"Task '{self.get_name()}' raised while applying to {file.name}")
            outcome = TaskResult.failure(f"{type(e).__name__}: {e}", error=e)

        result = _coerce_result(outcome, self.get_name())
        self.last_result = result

        if not result:
            self._status = TaskStatus.FAILED
        elif self._status is TaskStatus.NOT_EXECUTED:
            self._status = TaskStatus.SUCCEEDED

        return result

    @abstractmethod
    def run(self, file: "FileBuffer") -> Union[TaskResult, bool]:
        """Mutate ``file`` and report the outcome.

        Args:
            file: The buffer to mutate in place

        Returns:
            TaskResult, or a plain bool for simple tasks
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.get_name()!r} status={self._status.value}>"


def _coerce_result(outcome: Union[TaskResult, bool, None], task_name: str) -> TaskResult:
    if isinstance(outcome, TaskResult):
        return outcome
    if outcome:
        return TaskResult.success()
    return TaskResult.failure(f"Task '{task_name}' reported failure")
