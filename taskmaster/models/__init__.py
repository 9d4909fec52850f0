from taskmaster.models.user import User
from taskmaster.models.category import Category
from taskmaster.models.task import Task, TaskCategory

__all__ = [
    "User",
    "Category",
    "Task",
    "TaskCategory",
]
