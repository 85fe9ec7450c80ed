"""Lily-specific exceptions for error handling."""

from typing import Any, Optional


class LilyError(Exception):
    """Base class for every error raised by the patcher."""


class UnknownTaskTypeError(LilyError):
    """Raised when a task implementation cannot be resolved.

    Covers registration with a dotted reference that does not import, and
    ``@task`` directives naming a task that is not registered.

    Attributes:
        reference: The task name or implementation reference that failed
    """

    def __init__(self, message: str, reference: Optional[str] = None) -> None:
        super().__init__(message)
        self.reference = reference


class InvalidTaskContractError(LilyError):
    """Raised when a registered implementation is not a Task subclass.

    Attributes:
        implementation: The object that was offered for registration
    """

    def __init__(self, message: str, implementation: Optional[Any] = None) -> None:
        super().__init__(message)
        self.implementation = implementation


class MissingRequiredParameterError(LilyError):
    """Raised when a task block lacks one of its required parameters.

    Attributes:
        task_name: Name of the task being instantiated
        param: The missing parameter name
    """

    def __init__(self, task_name: str, param: str) -> None:
        super().__init__(f"Task '{task_name}' is missing required parameter '{param}'")
        self.task_name = task_name
        self.param = param


class InvalidPatchSourceError(LilyError):
    """Raised when a source that must be a patch carries no ``@lily`` directive."""

    def __init__(self, message: str, source: Optional[Any] = None) -> None:
        super().__init__(message)
        self.source = source


class SourceFileNotFoundError(LilyError, FileNotFoundError):
    """Raised when a file buffer is loaded from a path that does not exist."""

    def __init__(self, path: Any) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class FileWriteError(LilyError):
    """Raised when a buffered file cannot be written to its destination.

    The underlying ``OSError`` is chained as ``__cause__``.

    Attributes:
        path: Destination path of the failed write
    """

    def __init__(self, message: str, path: Optional[Any] = None) -> None:
        super().__init__(message)
        self.path = path


class ScopePathError(LilyError):
    """Raised when a ``@files`` entry points outside the input directory.

    Attributes:
        task_name: Name of the task whose scope was being resolved
        path: The offending path, made absolute against the input directory
    """

    def __init__(self, task_name: str, path: Any) -> None:
        super().__init__(f"Task '{task_name}' targets {path}, which is outside the input directory")
        self.task_name = task_name
        self.path = path


class OutputDirectoryError(LilyError):
    """Raised when the output directory cannot be prepared.

    Attributes:
        code: OS error number (``errno``), if known
        message: OS error message
    """

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(
            f"An exception occurred while trying to create the output directory: {message}"
        )
        self.code = code
        self.message = message


class TaskApplicationError(LilyError):
    """Raised by callers that prefer an exception over a failed result.

    The orchestrator itself never raises this; it returns a failure signal
    and keeps the :class:`~lily.core.schema.task.TaskResult` around.

    Attributes:
        result: The failed TaskResult
        task_name: Name of the task that failed
    """

    def __init__(self, task_name: str, result: Optional[Any] = None) -> None:
        cause = getattr(result, "cause", None)
        message = f"Task '{task_name}' failed"
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.task_name = task_name
        self.result = result
