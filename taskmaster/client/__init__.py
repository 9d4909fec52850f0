from taskmaster.client.models import Category, CategoryWithCount, Task, TaskFilters, TaskStats, User
from taskmaster.client.tasks_client import GraphQLRequestError, TaskClient

__all__ = [
    "Category",
    "CategoryWithCount",
    "Task",
    "TaskFilters",
    "TaskStats",
    "User",
    "GraphQLRequestError",
    "TaskClient",
]
