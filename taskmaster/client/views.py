"""
Pure derivations over the client's in-memory tasks and categories
"""
from datetime import date, datetime
from typing import List, Optional, Sequence

from taskmaster.client.models import Category, CategoryWithCount, Task, TaskFilters, TaskStats
from taskmaster.enums import PRIORITY_ORDER
from taskmaster.utils import task_rules


def _matches(task: Task, filters: TaskFilters) -> bool:
    if filters.status != "all" and task.status.value != filters.status:
        return False
    if filters.priority != "all" and task.priority.value != filters.priority:
        return False
    if filters.category_id != "all" and filters.category_id not in task.category_ids:
        return False
    if filters.search:
        term = filters.search.lower()
        in_title = term in task.title.lower()
        in_description = bool(task.description) and term in task.description.lower()
        if not (in_title or in_description):
            return False
    return True


def sort_tasks(tasks: Sequence[Task], sort_by: str = "createdAt") -> List[Task]:
    """Stable sort; unknown keys fall back to newest-first"""
    if sort_by == "dueDate":
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or date.min))
    if sort_by == "priority":
        return sorted(tasks, key=lambda t: PRIORITY_ORDER[t.priority], reverse=True)
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


def filter_tasks(tasks: Sequence[Task], filters: Optional[TaskFilters] = None) -> List[Task]:
    filters = filters or TaskFilters()
    return sort_tasks([t for t in tasks if _matches(t, filters)], filters.sort_by)


def is_task_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    return task_rules.is_task_overdue(task, now)


def is_task_due_today(task: Task, now: Optional[datetime] = None) -> bool:
    return task_rules.is_task_due_today(task, now)


def preview_task_stats(tasks: Sequence[Task], now: Optional[datetime] = None) -> TaskStats:
    """Locally computed stats; the server's taskStats stays authoritative"""
    return TaskStats(**task_rules.compute_task_stats(tasks, now).to_dict())


def categories_with_task_count(
    categories: Sequence[Category], tasks: Sequence[Task]
) -> List[CategoryWithCount]:
    return [
        CategoryWithCount(
            **category.model_dump(),
            task_count=sum(1 for t in tasks if category.id in t.category_ids),
        )
        for category in categories
    ]
