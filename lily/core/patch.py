"""Patch: an ordered list of task invocations parsed from one source.

A patch source is any text carrying a ``@lily`` directive in a comment::

    /**
     * @lily rename-api
     * @files src/api.php, src/client.php
     *
     * @task replace
     * @search old_name
     * @replace new_name
     */

Parsing rules:

- ``@lily [name]`` marks the source as a patch and optionally names it
- ``@task <name> [args]`` opens a task block; the block ends at the next
  ``@task`` or at the end of the comment it was opened in
- ``@files a, b`` scopes the open task, or the whole patch when no task
  block is open
- ``@<param> value`` binds a parameter of the open task
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from lily.core.errors import UnknownTaskTypeError
from lily.core.file import FileBuffer
from lily.core.grammar import Directive, Grammar
from lily.core.registry import TaskRegistry
from lily.core.schema.task import Task

logger = logging.getLogger(__name__)

INLINE_PATCH_NAME = "<inline>"


def split_files(arguments: str) -> List[str]:
    """Split a ``@files`` argument into relative paths."""
    return [part.strip() for part in arguments.split(",") if part.strip()]


@dataclass
class _TaskBlock:
    name: str
    arguments: str
    comment: int
    params: Dict[str, str] = field(default_factory=dict)
    extra_params: Dict[str, str] = field(default_factory=dict)
    files: Optional[List[str]] = None


class Patch:
    """Ordered set of task instances parsed from one source.

    Attributes:
        name: Display name (``@lily`` argument, file name, or ``<inline>``)
        source: Origin path, or None for inline content
        directives: Every directive found, in document order
        files: Patch-level file scope, or None for "every input file"
    """

    def __init__(
        self,
        name: str,
        tasks: Optional[List[Task]] = None,
        files: Optional[List[str]] = None,
        source: Optional[Path] = None,
        directives: Optional[List[Directive]] = None,
    ) -> None:
        self.name = name
        self.source = source
        self.files = list(files) if files else None
        self.directives = list(directives or [])
        self._tasks: List[Task] = list(tasks or [])

    @classmethod
    def from_source(
        cls,
        source: Union[str, Path],
        registry: TaskRegistry,
        grammar: Optional[Grammar] = None,
        name: Optional[str] = None,
    ) -> Optional["Patch"]:
        """Parse a patch from a file path or an inline content string.

        A ``Path``, or a string naming an existing file, is read from disk;
        any other string is parsed as content.

        Args:
            source: Path or content
            registry: Registry used to resolve ``@task`` names
            grammar: Grammar to scan with (default: the registry's current one)
            name: Fallback patch name when ``@lily`` carries none

        Returns:
            Patch, or None if the source has no ``@lily`` directive

        Raises:
            UnknownTaskTypeError: If a ``@task`` names an unregistered task
            MissingRequiredParameterError: If a task block lacks a required param
        """
        path = _as_existing_file(source)
        if path is not None:
            return cls.from_file(path, registry, grammar=grammar, name=name)
        return cls.from_string(str(source), registry, grammar=grammar, name=name)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        registry: TaskRegistry,
        grammar: Optional[Grammar] = None,
        name: Optional[str] = None,
    ) -> Optional["Patch"]:
        """Parse a patch file. See :meth:`from_source`."""
        path = Path(path)
        content = FileBuffer.load(path).get_original_content()
        return cls.from_string(
            content, registry, grammar=grammar, name=name or path.name, source=path
        )

    @classmethod
    def from_string(
        cls,
        content: str,
        registry: TaskRegistry,
        grammar: Optional[Grammar] = None,
        name: Optional[str] = None,
        source: Optional[Path] = None,
    ) -> Optional["Patch"]:
        """Parse inline patch content. See :meth:`from_source`."""
        if grammar is None:
            grammar = registry.grammar

        directives = grammar.scan(content)
        lily = [d for d in directives if d.keyword == "lily"]
        if not lily:
            return None

        patch_name = lily[0].arguments or name or INLINE_PATCH_NAME
        patch_files: Optional[List[str]] = None
        tasks: List[Task] = []
        block: Optional[_TaskBlock] = None

        for directive in directives:
            if block is not None and directive.comment != block.comment:
                tasks.append(_instantiate(block, registry, patch_name))
                block = None

            if directive.keyword == "lily":
                continue

            if directive.keyword == "task":
                if block is not None:
                    tasks.append(_instantiate(block, registry, patch_name))
                parts = directive.arguments.split(None, 1)
                block = _TaskBlock(
                    name=parts[0] if parts else "",
                    arguments=parts[1] if len(parts) > 1 else "",
                    comment=directive.comment,
                )
                continue

            if directive.keyword == "files":
                files = split_files(directive.arguments)
                if block is not None:
                    block.files = files
                else:
                    patch_files = files
                continue

            if block is None:
                logger.debug(f"[{patch_name}] ignoring @{directive.keyword} outside a task block")
                continue

            task_class = registry.lookup(block.name)
            if task_class is not None and directive.keyword in task_class.get_params():
                block.params[directive.keyword] = directive.arguments
            else:
                block.extra_params[directive.keyword] = directive.arguments

        if block is not None:
            tasks.append(_instantiate(block, registry, patch_name))

        logger.debug(f"Parsed patch '{patch_name}' with {len(tasks)} tasks")
        return cls(patch_name, tasks=tasks, files=patch_files, source=source, directives=directives)

    def get_tasks(self) -> List[Task]:
        return list(self._tasks)

    @property
    def tasks(self) -> List[Task]:
        return self.get_tasks()

    def has_files(self) -> bool:
        return bool(self.files)

    def get_files(self) -> List[str]:
        return list(self.files or [])

    def __repr__(self) -> str:
        return f"<Patch name={self.name!r} tasks={len(self._tasks)}>"


def _instantiate(block: _TaskBlock, registry: TaskRegistry, patch_name: str) -> Task:
    task_class = registry.lookup(block.name)
    if task_class is None:
        raise UnknownTaskTypeError(
            f"Patch '{patch_name}' uses unknown task '{block.name}'", block.name
        )
    return task_class(
        params=block.params,
        arguments=block.arguments,
        files=block.files,
        extra_params=block.extra_params,
    )


def _as_existing_file(source: Union[str, Path]) -> Optional[Path]:
    if isinstance(source, Path):
        return source
    if "\n" in source or len(source) > 4096:
        return None
    try:
        path = Path(source)
        return path if path.is_file() else None
    except (OSError, ValueError):
        return None
