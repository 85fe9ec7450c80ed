"""
Core schema definitions for tasks and their results.
"""

from lily.core.schema.task import Task, TaskResult, TaskStatus

__all__ = [
    "Task",
    "TaskResult",
    "TaskStatus",
]
