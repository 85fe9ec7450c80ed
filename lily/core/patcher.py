"""Patcher: orchestrates patches and tasks over in-memory file buffers.

Two execution modes:

- :meth:`Patcher.apply` runs every task against a single string, touching no files
- :meth:`Patcher.run` runs every task against the files of ``input_dir`` and
  writes the buffered results to ``output_dir`` once every task succeeded

Ordering is strict: patch registration order, then directive order within a
patch, then target file order within a task. Later tasks see the edits of
earlier tasks on the same file.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from lily.core.config import VALID_OPTIONS, coerce_bool
from lily.core.errors import InvalidPatchSourceError, OutputDirectoryError, ScopePathError
from lily.core.file import FileBuffer
from lily.core.patch import Patch
from lily.core.registry import TaskReference, TaskRegistry
from lily.core.schema.task import Task, TaskResult, TaskStatus
from lily.core.utils import (
    directory_as_list,
    is_within,
    mirror_path,
    path_absolute,
    path_resolve,
    rrmdir,
)


@dataclass
class PatchResults:
    """Tasks of every patch grouped by execution status.

    Attributes:
        succeeded: Tasks whose every application succeeded
        failed: Tasks with a failed application
        not_executed: Tasks never reached
    """

    succeeded: List[Task] = field(default_factory=list)
    failed: List[Task] = field(default_factory=list)
    not_executed: List[Task] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> Dict[str, int]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "not_executed": len(self.not_executed),
        }


class Patcher:
    """Owns the task registry, the patch list and the pending-save map of one run.

    The continuation flag is reset and the pending-save map cleared by every
    :meth:`run`, so one instance can run several times.

    Args:
        options: ``input_dir``, ``output_dir`` (default: current directory) and
                 ``auto_clean`` (default: True). Other keys are ignored.
        register_builtins: Register every task of :mod:`lily.tasks`
        registry: Registry to use instead of a fresh one
        logger: Logging sink for progress and failure lines

    Example:
        >>> patcher = Patcher({"input_dir": "src", "output_dir": "build"})
        >>> patcher.add_patch("patches/rename.php")
        >>> patcher.run()
        True
    """

    # Pause after removing the output tree so the filesystem releases the path
    CLEAN_PAUSE_SECONDS = 1.0

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        register_builtins: bool = True,
        registry: Optional[TaskRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry if registry is not None else TaskRegistry()
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.input_dir: Path = path_resolve(Path.cwd())
        self.output_dir: Path = path_resolve(Path.cwd())
        self.auto_clean = True
        self.clean_pause = self.CLEAN_PAUSE_SECONDS

        self.patches: List[Patch] = []
        self.pending_saves: Dict[Path, FileBuffer] = {}
        self.can_continue = True
        self.last_failure: Optional[TaskResult] = None
        self.failed_task: Optional[Task] = None

        if register_builtins:
            from lily.tasks import discover_builtin_tasks

            for task_class in discover_builtin_tasks():
                self.register_task(task_class.NAME, task_class)

        for key, value in (options or {}).items():
            if key not in VALID_OPTIONS:
                continue
            if key == "input_dir":
                self.set_input_directory(value)
            elif key == "output_dir":
                self.set_output_directory(value)
            elif key == "auto_clean":
                self.auto_clean = coerce_bool(value)

    def stop(self) -> None:
        """Ask the current run to stop after the task application in progress."""
        self.can_continue = False

    def get_task(self, name: str) -> Optional[Type[Task]]:
        return self.registry.lookup(name)

    def register_task(self, name: str, implementation: TaskReference) -> Type[Task]:
        """Register a task; see :meth:`TaskRegistry.register`."""
        return self.registry.register(name, implementation)

    @property
    def registered_params(self) -> List[str]:
        return list(self.registry.params)

    def set_input_directory(self, directory: Union[str, Path]) -> Path:
        self.input_dir = path_resolve(directory)
        return self.input_dir

    def set_output_directory(self, directory: Union[str, Path]) -> Path:
        self.output_dir = path_resolve(directory)
        return self.output_dir

    def add_patch(self, patch: Union[str, Path, Patch], required: bool = False) -> Optional[Patch]:
        """Register a patch.

        Args:
            patch: Patch instance, patch file path, or inline patch content
            required: Raise instead of returning None when the source is not a patch

        Returns:
            The registered Patch, or None if the source carries no ``@lily`` directive

        Raises:
            TypeError: If ``patch`` is not a string, Path or Patch
            InvalidPatchSourceError: If ``required`` and the source is not a patch
        """
        if not isinstance(patch, (str, Path, Patch)):
            raise TypeError(
                f"Invalid patch given: not a valid string and not a Patch instance ({type(patch).__name__})"
            )

        if not isinstance(patch, Patch):
            source = patch
            patch = Patch.from_source(source, self.registry)
            if patch is None:
                if required:
                    raise InvalidPatchSourceError(f"Not a Lily patch: {source}", source)
                self.logger.debug(f"Skipping {source}: no @lily directive")
                return None

        self.patches.append(patch)
        return patch

    def discover_patches(self, directory: Optional[Union[str, Path]] = None) -> List[Patch]:
        """Add every patch file found under ``directory`` (default: ``input_dir``).

        Returns:
            The added patches, in path order
        """
        root = path_resolve(directory) if directory is not None else self.input_dir
        found = []
        for path in directory_as_list(root, exclude=self.output_dir):
            patch = self.add_patch(path)
            if patch is not None:
                self.logger.info(f"found patch {patch.name} in {path}")
                found.append(patch)
        return found

    def generate_results(self) -> PatchResults:
        """Group every task of every patch by status."""
        results = PatchResults()
        for patch in self.patches:
            for task in patch.get_tasks():
                status = task.get_status()
                if status is TaskStatus.SUCCEEDED:
                    results.succeeded.append(task)
                elif status is TaskStatus.FAILED:
                    results.failed.append(task)
                else:
                    results.not_executed.append(task)
        return results

    def apply(self, content: str) -> Optional[str]:
        """Run every patch against ``content`` in memory.

        Args:
            content: Text to transform

        Returns:
            The transformed text, or None if a task failed
        """
        file = FileBuffer.from_content(content)

        for patch in self.patches:
            self.logger.info(f"processing patch {patch.name}")

            for task in patch.get_tasks():
                self.logger.info(f"doing task {task.get_name()}")

                result = task.apply(file, self)
                if not result:
                    self._record_failure(task, result)
                    return None

        return file.get_modified_content()

    def run(self) -> bool:
        """Run every patch against the input tree and write the output tree.

        Returns:
            True if every task succeeded and all buffered files were saved,
            False if a task failed or the run was stopped (nothing is written)

        Raises:
            ScopePathError: If a ``@files`` entry lies outside the input directory
            OutputDirectoryError: If the output directory cannot be prepared
            SourceFileNotFoundError: If a scoped file does not exist
            FileWriteError: If a buffered file cannot be saved
        """
        self.can_continue = True
        patcher_files = directory_as_list(self.input_dir, exclude=self.output_dir)

        # Scopes are checked before the output tree is touched
        plan = [
            (patch, [(task, self._resolve_targets(patch, task, patcher_files)) for task in patch.get_tasks()])
            for patch in self.patches
        ]

        if self.auto_clean:
            self._prepare_output_directory()

        try:
            for patch, tasks in plan:
                self.logger.info(f"processing patch {patch.name}")

                for task, targets in tasks:
                    self.logger.info(f"doing task {task.get_name()}")

                    for file in targets:
                        output_file = mirror_path(file, self.input_dir, self.output_dir)

                        if output_file not in self.pending_saves:
                            self.pending_saves[output_file] = FileBuffer.load(file)

                        result = task.apply(self.pending_saves[output_file], self)
                        if not result:
                            self._record_failure(task, result)
                            return False

                        if not self.can_continue:
                            self.logger.warning(f"execution stopped by task {task.get_name()}")
                            return False

            for output_file, buffer in self.pending_saves.items():
                buffer.save(output_file)

            self.logger.info(f"saved {len(self.pending_saves)} files to {self.output_dir}")
            return True
        finally:
            self.pending_saves = {}

    def _prepare_output_directory(self) -> None:
        if is_within(self.input_dir, self.output_dir):
            raise OutputDirectoryError(
                f"{self.output_dir} contains the input directory and cannot be cleaned"
            )

        if self.output_dir.is_dir():
            rrmdir(self.output_dir)
            time.sleep(self.clean_pause)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(e.strerror or str(e), e.errno) from e

    def _resolve_targets(self, patch: Patch, task: Task, patcher_files: List[Path]) -> List[Path]:
        patch_files = self._scope_paths(task, patch.get_files())

        if task.has_files():
            task_files = self._scope_paths(task, task.get_files())
            if patch.has_files():
                return [f for f in task_files if f in patch_files]
            return task_files

        if patch.has_files():
            return patch_files

        return patcher_files

    def _scope_paths(self, task: Task, files: List[str]) -> List[Path]:
        paths = []
        for name in files:
            path = path_absolute(self.input_dir, name)
            if path == self.input_dir or not is_within(path, self.input_dir):
                raise ScopePathError(task.get_name(), path)
            paths.append(path)
        return paths

    def _record_failure(self, task: Task, result: TaskResult) -> None:
        self.failed_task = task
        self.last_failure = result
        if result.cause:
            self.logger.error(f"an error occurred while doing task {task.get_name()}: {result.cause}")
        else:
            self.logger.error(f"an error occurred while doing task {task.get_name()}")
