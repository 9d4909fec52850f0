"""
Client-side models parsed from GraphQL responses (camelCase on the wire)
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from taskmaster.enums import TaskStatus, Priority


class ApiModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class User(ApiModel):
    id: str
    email: str


class Task(ApiModel):
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    category_ids: List[str] = []


class Category(ApiModel):
    id: str
    name: str
    color: str
    created_at: datetime


class CategoryWithCount(Category):
    task_count: int = 0


class TaskStats(ApiModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    completed_today: int = 0
    overdue: int = 0
    today_tasks: int = 0


class TaskFilters(ApiModel):
    """'all' disables a filter; sort_by is dueDate, priority or createdAt"""
    status: str = "all"
    priority: str = "all"
    category_id: str = "all"
    search: str = ""
    sort_by: str = "createdAt"
