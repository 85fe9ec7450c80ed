"""
Lily: annotation-driven source patching

Scans sources for comment directives, groups them into patches of ordered
tasks, applies the tasks to in-memory copies of the input tree and writes the
patched files to a separate output tree.
"""

__version__ = "1.0.0"

from lily.core.patch import Patch
from lily.core.patcher import Patcher, PatchResults
from lily.core.schema.task import Task, TaskResult, TaskStatus

__all__ = [
    "__version__",
    "Patch",
    "Patcher",
    "PatchResults",
    "Task",
    "TaskResult",
    "TaskStatus",
]
