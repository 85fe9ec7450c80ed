"""Built-in tasks.

Every module of this package defines one task class named after the module
in camel case (``remove_block.py`` -> ``RemoveBlock``). The Patcher registers
all of them at construction.
"""

import importlib
import inspect
import logging
import pkgutil
from typing import List, Type

from lily.core.errors import InvalidTaskContractError, UnknownTaskTypeError
from lily.core.schema.task import Task
from lily.core.utils import snake_to_camel_case

logger = logging.getLogger(__name__)


def get_builtin_task_names() -> List[str]:
    """Return dotted references (``lily.tasks.module:Class``) of every built-in task."""
    references = []
    for module_info in sorted(pkgutil.iter_modules(__path__), key=lambda m: m.name):
        if module_info.name.startswith("_") or module_info.ispkg:
            continue
        class_name = snake_to_camel_case(module_info.name)
        references.append(f"{__name__}.{module_info.name}:{class_name}")
    return references


def discover_builtin_tasks() -> List[Type[Task]]:
    """Import every built-in task module and return its task class.

    Raises:
        UnknownTaskTypeError: If a module lacks its camel-cased task class
        InvalidTaskContractError: If that class is not a Task subclass
    """
    tasks = []
    for reference in get_builtin_task_names():
        module_name, _, class_name = reference.partition(":")
        module = importlib.import_module(module_name)
        task_class = getattr(module, class_name, None)
        if task_class is None:
            raise UnknownTaskTypeError(f"Class {reference} doesn't exist.", reference)
        if not (inspect.isclass(task_class) and issubclass(task_class, Task)):
            raise InvalidTaskContractError(f"{reference} is not a valid Lily task.", task_class)
        tasks.append(task_class)

    logger.debug(f"Discovered {len(tasks)} built-in tasks")
    return tasks
