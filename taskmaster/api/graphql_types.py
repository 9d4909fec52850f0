"""
GraphQL object, enum and input types
"""
from enum import Enum
from typing import List, Optional

import strawberry
from strawberry import UNSET

from taskmaster import enums
from taskmaster.models.category import Category as CategoryModel
from taskmaster.services.task_store import TaskView
from taskmaster.utils.helpers import format_date, format_datetime
from taskmaster.utils.task_rules import TaskStatsData


@strawberry.enum(name="TaskStatus")
class TaskStatusEnum(Enum):
    todo = "todo"
    in_progress = "in_progress"
    completed = "completed"


@strawberry.enum(name="Priority")
class PriorityEnum(Enum):
    low = "low"
    medium = "medium"
    high = "high"


@strawberry.type
class User:
    id: strawberry.ID
    email: str


@strawberry.type
class Category:
    id: strawberry.ID
    name: str
    color: str
    created_at: str

    @classmethod
    def from_model(cls, category: CategoryModel) -> "Category":
        return cls(
            id=strawberry.ID(str(category.id)),
            name=category.name,
            color=category.color,
            created_at=format_datetime(category.created_at),
        )


@strawberry.type
class Task:
    id: strawberry.ID
    title: str
    description: Optional[str]
    status: TaskStatusEnum
    priority: PriorityEnum
    due_date: Optional[str]
    created_at: str
    updated_at: str
    category_ids: List[strawberry.ID]
    categories: List[Category]

    @classmethod
    def from_view(cls, view: TaskView) -> "Task":
        task = view.task
        return cls(
            id=strawberry.ID(str(task.id)),
            title=task.title,
            description=task.description,
            status=TaskStatusEnum(enums.TaskStatus(task.status).value),
            priority=PriorityEnum(enums.Priority(task.priority).value),
            due_date=format_date(task.due_date),
            created_at=format_datetime(task.created_at),
            updated_at=format_datetime(task.updated_at),
            category_ids=[strawberry.ID(str(i)) for i in view.category_ids],
            categories=[Category.from_model(c) for c in view.categories],
        )


@strawberry.type
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    completed_today: int = 0
    overdue: int = 0
    today_tasks: int = 0

    @classmethod
    def from_data(cls, data: TaskStatsData) -> "TaskStats":
        return cls(**data.to_dict())


@strawberry.input
class CreateTaskInput:
    title: str
    description: Optional[str] = None
    priority: Optional[PriorityEnum] = None
    due_date: Optional[str] = None
    category_ids: Optional[List[strawberry.ID]] = None


@strawberry.input
class UpdateTaskInput:
    """Only fields that are present are written; null clears description/dueDate"""
    title: Optional[str] = UNSET
    description: Optional[str] = UNSET
    status: Optional[TaskStatusEnum] = UNSET
    priority: Optional[PriorityEnum] = UNSET
    due_date: Optional[str] = UNSET


@strawberry.input
class CreateCategoryInput:
    name: str
    color: Optional[str] = None


@strawberry.input
class UpdateCategoryInput:
    name: Optional[str] = UNSET
    color: Optional[str] = UNSET
