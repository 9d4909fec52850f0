"""
Datastore accessor for tasks, categories and the task_categories join table.

Every function takes the owning user id explicitly and scopes each query by
it. Database failures are raised as TaskStoreError; callers decide whether a
failure is fatal or has a fallback. Multi-step writes (task + links, link
cleanup + delete) run as a single transaction and are rolled back as a unit.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.config import get_settings
from taskmaster.enums import TaskStatus, Priority
from taskmaster.models.task import Task, TaskCategory
from taskmaster.models.category import Category, category_name_key
from taskmaster.utils.helpers import utcnow
from taskmaster.utils.task_rules import TaskStatsData, compute_task_stats
from taskmaster.utils.validators import (
    validate_title,
    validate_description,
    validate_category_name,
    validate_color,
)

settings = get_settings()
logger = logging.getLogger(__name__)

TASK_UPDATE_FIELDS = {"title", "description", "status", "priority", "due_date"}
CATEGORY_UPDATE_FIELDS = {"name", "color"}


class TaskStoreError(Exception):
    """A datastore round trip failed"""


class NotFoundError(TaskStoreError):
    """The requested row does not exist for this user"""


class ConflictError(TaskStoreError):
    """The write would break a uniqueness rule"""


@dataclass
class TaskView:
    """A task row together with the categories linked to it"""
    task: Task
    categories: List[Category] = field(default_factory=list)

    @property
    def category_ids(self) -> List[int]:
        return [c.id for c in self.categories]


@asynccontextmanager
async def _transaction(db: AsyncSession, action: str, commit: bool = True):
    try:
        yield
        if commit:
            await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Failed to {action}: {e}")
        raise ConflictError(f"Failed to {action}: conflicting row") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise TaskStoreError(f"Failed to {action}: {e}") from e
    except Exception:
        await db.rollback()
        raise


async def _get_owned_task(db: AsyncSession, user_id: int, task_id: int) -> Optional[Task]:
    result = await db.execute(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def _get_owned_category(db: AsyncSession, user_id: int, category_id: int) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def _owned_categories(db: AsyncSession, user_id: int, category_ids: Iterable[int]) -> List[Category]:
    wanted = list(dict.fromkeys(category_ids))
    if not wanted:
        return []

    result = await db.execute(
        select(Category)
        .where(Category.id.in_(wanted), Category.user_id == user_id)
        .order_by(Category.created_at, Category.id)
    )
    categories = list(result.scalars().all())

    missing = set(wanted) - {c.id for c in categories}
    if missing:
        raise NotFoundError(f"Category not found: {', '.join(str(i) for i in sorted(missing))}")
    return categories


async def _categories_by_task(db: AsyncSession, task_ids: List[int]) -> Dict[int, List[Category]]:
    links: Dict[int, List[Category]] = {task_id: [] for task_id in task_ids}
    if not task_ids:
        return links

    result = await db.execute(
        select(TaskCategory.task_id, Category)
        .join(Category, Category.id == TaskCategory.category_id)
        .where(TaskCategory.task_id.in_(task_ids))
        .order_by(Category.created_at, Category.id)
    )
    for task_id, category in result.all():
        links[task_id].append(category)
    return links


async def _name_taken(
    db: AsyncSession, user_id: int, name: str, exclude_id: Optional[int] = None
) -> bool:
    query = select(Category.id).where(
        Category.user_id == user_id,
        Category.name_key == category_name_key(name),
    )
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


# --- Tasks ---

async def list_tasks(db: AsyncSession, user_id: int) -> List[TaskView]:
    """All tasks of the user, newest first"""
    async with _transaction(db, "fetch tasks", commit=False):
        result = await db.execute(
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        tasks = list(result.scalars().all())
        links = await _categories_by_task(db, [t.id for t in tasks])

    return [TaskView(task=t, categories=links[t.id]) for t in tasks]


async def get_task(db: AsyncSession, user_id: int, task_id: int) -> Optional[TaskView]:
    """One task with its categories, or None when the user has no such task"""
    async with _transaction(db, "fetch task", commit=False):
        task = await _get_owned_task(db, user_id, task_id)
        if task is None:
            return None
        links = await _categories_by_task(db, [task.id])

    return TaskView(task=task, categories=links[task.id])


async def create_task(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    priority: Optional[Priority] = None,
    due_date: Optional[date] = None,
    category_ids: Iterable[int] = (),
) -> TaskView:
    """
    Insert a task and its category links in one transaction. If any link
    cannot be created the task insert is rolled back as well.
    """
    title = validate_title(title)
    validate_description(description)

    async with _transaction(db, "create task"):
        now = utcnow()
        task = Task(
            user_id=user_id,
            title=title,
            description=description or None,
            status=TaskStatus.TODO,
            priority=priority or Priority.MEDIUM,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        db.add(task)
        await db.flush()

        categories = await _owned_categories(db, user_id, category_ids)
        db.add_all([TaskCategory(task_id=task.id, category_id=c.id) for c in categories])
        await db.flush()

    logger.info(f"User {user_id} created task {task.id} with {len(categories)} categories")
    return TaskView(task=task, categories=categories)


async def update_task(
    db: AsyncSession, user_id: int, task_id: int, updates: Dict[str, Any]
) -> TaskView:
    """Apply only the given fields; updated_at is always refreshed"""
    updates = dict(updates)
    unknown = set(updates) - TASK_UPDATE_FIELDS
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    if "title" in updates:
        updates["title"] = validate_title(updates["title"])
    if "description" in updates:
        validate_description(updates["description"])
    if updates.get("status") is not None:
        updates["status"] = TaskStatus(updates["status"])
    if updates.get("priority") is not None:
        updates["priority"] = Priority(updates["priority"])

    async with _transaction(db, "update task"):
        task = await _get_owned_task(db, user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        for key, value in updates.items():
            setattr(task, key, value)
        task.updated_at = utcnow()
        await db.flush()
        links = await _categories_by_task(db, [task.id])

    return TaskView(task=task, categories=links[task.id])


async def delete_task(db: AsyncSession, user_id: int, task_id: int) -> bool:
    """Remove the task's links, then the task. False if there was no such task."""
    async with _transaction(db, "delete task"):
        task = await _get_owned_task(db, user_id, task_id)
        if task is None:
            return False

        await db.execute(delete(TaskCategory).where(TaskCategory.task_id == task_id))
        await db.execute(delete(Task).where(Task.id == task_id, Task.user_id == user_id))

    logger.info(f"User {user_id} deleted task {task_id}")
    return True


async def add_task_to_category(
    db: AsyncSession, user_id: int, task_id: int, category_id: int
) -> TaskView:
    """Link a task to a category; linking twice is a no-op"""
    async with _transaction(db, "add task to category"):
        task = await _get_owned_task(db, user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        if await _get_owned_category(db, user_id, category_id) is None:
            raise NotFoundError(f"Category {category_id} not found")

        existing = await db.get(TaskCategory, (task_id, category_id))
        if existing is None:
            db.add(TaskCategory(task_id=task_id, category_id=category_id))
        task.updated_at = utcnow()
        await db.flush()
        links = await _categories_by_task(db, [task.id])

    return TaskView(task=task, categories=links[task.id])


async def remove_task_from_category(
    db: AsyncSession, user_id: int, task_id: int, category_id: int
) -> TaskView:
    async with _transaction(db, "remove task from category"):
        task = await _get_owned_task(db, user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        await db.execute(
            delete(TaskCategory).where(
                TaskCategory.task_id == task_id,
                TaskCategory.category_id == category_id,
            )
        )
        task.updated_at = utcnow()
        await db.flush()
        links = await _categories_by_task(db, [task.id])

    return TaskView(task=task, categories=links[task.id])


async def category_ids_for_tasks(
    db: AsyncSession, user_id: int, task_ids: Iterable[int]
) -> Dict[int, List[int]]:
    """Category ids linked to each of the user's tasks; other users' task ids are left out"""
    async with _transaction(db, "fetch task categories", commit=False):
        result = await db.execute(
            select(Task.id).where(Task.id.in_(list(task_ids)), Task.user_id == user_id)
        )
        owned = list(result.scalars().all())
        links = await _categories_by_task(db, owned)

    return {task_id: [c.id for c in categories] for task_id, categories in links.items()}


async def get_task_stats(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> TaskStatsData:
    """Aggregates over the user's full, unfiltered task set"""
    async with _transaction(db, "fetch task stats", commit=False):
        result = await db.execute(select(Task).where(Task.user_id == user_id))
        tasks = result.scalars().all()

    return compute_task_stats(tasks, now)


# --- Categories ---

async def list_categories(db: AsyncSession, user_id: int) -> List[Category]:
    """All categories of the user, oldest first"""
    async with _transaction(db, "fetch categories", commit=False):
        result = await db.execute(
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(Category.created_at.asc(), Category.id.asc())
        )
        return list(result.scalars().all())


async def get_category(db: AsyncSession, user_id: int, category_id: int) -> Optional[Category]:
    async with _transaction(db, "fetch category", commit=False):
        return await _get_owned_category(db, user_id, category_id)


async def create_category(
    db: AsyncSession, user_id: int, name: str, color: Optional[str] = None
) -> Category:
    name = validate_category_name(name)
    color = validate_color(color) if color else settings.DEFAULT_CATEGORY_COLOR

    async with _transaction(db, "create category"):
        if await _name_taken(db, user_id, name):
            raise ConflictError(f"Category '{name}' already exists")

        category = Category(user_id=user_id, name=name, color=color, created_at=utcnow())
        db.add(category)
        await db.flush()

    logger.info(f"User {user_id} created category {category.id} ({category.name})")
    return category


async def update_category(
    db: AsyncSession, user_id: int, category_id: int, updates: Dict[str, Any]
) -> Category:
    updates = dict(updates)
    unknown = set(updates) - CATEGORY_UPDATE_FIELDS
    if unknown:
        raise ValueError(f"Unknown category fields: {', '.join(sorted(unknown))}")
    if "name" in updates:
        updates["name"] = validate_category_name(updates["name"])
    if "color" in updates:
        updates["color"] = validate_color(updates["color"] or settings.DEFAULT_CATEGORY_COLOR)

    async with _transaction(db, "update category"):
        category = await _get_owned_category(db, user_id, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        if "name" in updates and await _name_taken(db, user_id, updates["name"], exclude_id=category_id):
            raise ConflictError(f"Category '{updates['name']}' already exists")

        for key, value in updates.items():
            setattr(category, key, value)
        await db.flush()

    return category


async def delete_category(db: AsyncSession, user_id: int, category_id: int) -> bool:
    """Unlink the category from every task, then remove it. False if there was no such category."""
    async with _transaction(db, "delete category"):
        category = await _get_owned_category(db, user_id, category_id)
        if category is None:
            return False

        await db.execute(delete(TaskCategory).where(TaskCategory.category_id == category_id))
        await db.execute(
            delete(Category).where(Category.id == category_id, Category.user_id == user_id)
        )

    logger.info(f"User {user_id} deleted category {category_id}")
    return True
