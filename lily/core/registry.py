"""Task registry: task name -> task class, plus the derived directive grammar."""

import importlib
import inspect
import logging
from typing import Dict, Iterator, List, Optional, Tuple, Type, Union

from lily.core.errors import InvalidTaskContractError, UnknownTaskTypeError
from lily.core.grammar import Grammar, build_grammar, dedupe
from lily.core.schema.task import Task

logger = logging.getLogger(__name__)

TaskReference = Union[str, Type[Task]]


def resolve_task_reference(reference: TaskReference) -> object:
    """Resolve a dotted task reference to the object it names.

    Accepts ``"package.module:ClassName"`` and ``"package.module.ClassName"``.
    Non-string references are returned unchanged.

    Raises:
        UnknownTaskTypeError: If the module or attribute cannot be found
    """
    if not isinstance(reference, str):
        return reference

    if ":" in reference:
        module_name, _, attr = reference.partition(":")
    else:
        module_name, _, attr = reference.rpartition(".")

    if not module_name or not attr:
        raise UnknownTaskTypeError(f"Class {reference} doesn't exist.", reference)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise UnknownTaskTypeError(f"Class {reference} doesn't exist.", reference) from e

    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise UnknownTaskTypeError(f"Class {reference} doesn't exist.", reference) from e


class TaskRegistry:
    """Name-keyed table of task classes.

    Registering a task merges its parameter names into the registered set
    and rebuilds the grammar. Parameter names are never removed, even when a
    later registration replaces a task under the same name.

    Example:
        >>> registry = TaskRegistry()
        >>> registry.register("replace", "lily.tasks.replace:Replace")
        >>> registry.lookup("replace")
        <class 'lily.tasks.replace.Replace'>
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Type[Task]] = {}
        self._params: Tuple[str, ...] = ()
        self._grammar: Grammar = build_grammar(self._params)

    def register(self, name: str, implementation: TaskReference) -> Type[Task]:
        """Register a task class under ``name``, replacing any previous one.

        Args:
            name: Name used by ``@task <name>`` directives
            implementation: Task subclass or dotted reference to one

        Returns:
            The registered task class

        Raises:
            UnknownTaskTypeError: If a dotted reference cannot be resolved
            InvalidTaskContractError: If the implementation is not a Task subclass
        """
        task_class = resolve_task_reference(implementation)

        if not (inspect.isclass(task_class) and issubclass(task_class, Task)):
            raise InvalidTaskContractError(
                f"{implementation!r} is not a valid Lily task.", implementation
            )
        if inspect.isabstract(task_class):
            raise InvalidTaskContractError(
                f"{task_class.__name__} does not implement run().", implementation
            )

        if name in self._tasks:
            logger.debug(f"Replacing task '{name}' ({self._tasks[name].__name__} -> {task_class.__name__})")
        self._tasks[name] = task_class

        self._params = dedupe(self._params + tuple(task_class.get_params()))
        self._grammar = build_grammar(self._params)

        return task_class

    def lookup(self, name: str) -> Optional[Type[Task]]:
        return self._tasks.get(name)

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def params(self) -> Tuple[str, ...]:
        return self._params

    @property
    def names(self) -> List[str]:
        return list(self._tasks)

    def items(self) -> List[Tuple[str, Type[Task]]]:
        return list(self._tasks.items())

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[str]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)
