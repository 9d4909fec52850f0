"""
Async client for the Taskmaster GraphQL API.

Keeps the latest tasks, categories, user and stats in memory, refetches the
affected queries after every mutation, and exposes the filtered / aggregated
views the app screens render.
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError as ModelValidationError

from taskmaster.client import documents
from taskmaster.client import views
from taskmaster.client.models import (
    Category,
    CategoryWithCount,
    Task,
    TaskFilters,
    TaskStats,
    User,
)
from taskmaster.config import get_settings
from taskmaster.enums import TaskStatus, Priority
from taskmaster.utils.validators import (
    ValidationError,
    category_input_errors,
    task_input_errors,
)

settings = get_settings()
logger = logging.getLogger(__name__)

# Query name -> GraphQL document
QUERIES = {
    "user": documents.GET_USER,
    "tasks": documents.GET_TASKS,
    "categories": documents.GET_CATEGORIES,
    "taskStats": documents.GET_TASK_STATS,
}

# Mutation -> queries refetched after it succeeds
REFETCH_QUERIES = {
    "createTask": ("tasks", "taskStats"),
    "updateTask": ("tasks", "taskStats"),
    "deleteTask": ("tasks", "taskStats"),
    "addTaskToCategory": ("tasks", "taskStats"),
    "removeTaskFromCategory": ("tasks", "taskStats"),
    "createCategory": ("categories",),
    "updateCategory": ("categories",),
    "deleteCategory": ("categories", "tasks"),
}


class GraphQLRequestError(Exception):
    """Transport failure or a GraphQL response carrying errors"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class TaskClient:
    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url or settings.API_URL
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout or settings.CLIENT_TIMEOUT_SECONDS
        )
        self._in_flight = 0

        self.user: Optional[User] = None
        self.tasks: List[Task] = []
        self.categories: List[Category] = []
        self.task_stats: TaskStats = TaskStats()
        self.errors: Dict[str, Exception] = {}

    async def __aenter__(self) -> "TaskClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    # --- Transport ---

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._in_flight += 1
        try:
            response = await self._http.post(
                self.url,
                json={"query": query, "variables": variables or {}},
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GraphQLRequestError(f"Request failed: {e}") from e
        finally:
            self._in_flight -= 1

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphQLRequestError(f"Invalid response body: {e}") from e
        if not isinstance(payload, dict):
            raise GraphQLRequestError("Invalid response body: expected a JSON object")

        if payload.get("errors"):
            errors = payload["errors"]
            raise GraphQLRequestError(
                "; ".join(err.get("message", "Unknown error") for err in errors), errors
            )
        return payload.get("data") or {}

    # --- Queries ---

    def _store(self, name: str, data: Dict[str, Any]) -> None:
        value = data.get(name)
        if name == "user":
            self.user = User.model_validate(value) if value else None
        elif name == "tasks":
            self.tasks = [Task.model_validate(t) for t in value or []]
        elif name == "categories":
            self.categories = [Category.model_validate(c) for c in value or []]
        elif name == "taskStats":
            self.task_stats = TaskStats.model_validate(value) if value else TaskStats()

    async def fetch(self, name: str) -> None:
        """Run one named query and replace that collection with the result"""
        data = await self.execute(QUERIES[name])
        try:
            self._store(name, data)
        except ModelValidationError as e:
            raise GraphQLRequestError(f"Unexpected {name} payload: {e}") from e
        self.errors.pop(name, None)

    async def _fetch_keeping_stale(self, name: str) -> None:
        # On failure the previous value stays visible.
        try:
            await self.fetch(name)
        except GraphQLRequestError as e:
            logger.error(f"{name} query error: {e}")
            self.errors[name] = e

    async def _refetch(self, names: Sequence[str]) -> None:
        await asyncio.gather(*(self._fetch_keeping_stale(n) for n in names))

    async def refresh(self) -> None:
        await self._refetch(list(QUERIES))

    async def get_task(self, task_id: str) -> Optional[Task]:
        data = await self.execute(documents.GET_TASK, {"id": task_id})
        return Task.model_validate(data["task"]) if data.get("task") else None

    async def _mutate(self, name: str, document: str, variables: Dict[str, Any]) -> Any:
        data = await self.execute(document, variables)
        await self._refetch(REFETCH_QUERIES[name])
        return data[name]

    # --- Task mutations ---

    async def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        due_date: Optional[date] = None,
        category_ids: Sequence[str] = (),
        today: Optional[date] = None,
    ) -> Task:
        errors = task_input_errors(title, description, due_date, today=today)
        if errors:
            raise ValidationError(errors)

        task_input = {
            "title": title.strip(),
            "description": description or None,
            "priority": Priority(priority).value,
            "dueDate": due_date.isoformat() if due_date else None,
            "categoryIds": list(category_ids),
        }
        result = await self._mutate("createTask", documents.CREATE_TASK, {"input": task_input})
        return Task.model_validate(result)

    async def update_task(self, task_id: str, **fields: Any) -> Task:
        """
        Partial update: pass any of title, description, status, priority,
        due_date. Fields left out are not sent and stay unchanged.
        """
        errors = task_input_errors(
            fields.get("title"), fields.get("description"), partial=True
        )
        if errors:
            raise ValidationError(errors)

        task_input: Dict[str, Any] = {}
        for key, value in fields.items():
            if key in ("status", "priority"):
                # None leaves the field unchanged, same as the server
                if value is None:
                    continue
                value = getattr(value, "value", value)
            elif key == "due_date":
                key = "dueDate"
                value = value.isoformat() if value else None
            elif key not in ("title", "description"):
                raise ValueError(f"Unknown task field: {key}")
            task_input[key] = value

        result = await self._mutate(
            "updateTask", documents.UPDATE_TASK, {"id": task_id, "input": task_input}
        )
        return Task.model_validate(result)

    async def toggle_task_status(self, task: Task) -> Task:
        """completed -> todo, anything else -> completed"""
        new_status = TaskStatus.TODO if task.status == TaskStatus.COMPLETED else TaskStatus.COMPLETED
        return await self.update_task(task.id, status=new_status)

    async def advance_task_status(self, task: Task) -> Task:
        """todo -> in_progress -> completed; completed stays completed"""
        next_status = {
            TaskStatus.TODO: TaskStatus.IN_PROGRESS,
            TaskStatus.IN_PROGRESS: TaskStatus.COMPLETED,
        }.get(task.status, TaskStatus.COMPLETED)
        return await self.update_task(task.id, status=next_status)

    async def delete_task(self, task_id: str) -> bool:
        return await self._mutate("deleteTask", documents.DELETE_TASK, {"id": task_id})

    async def add_task_to_category(self, task_id: str, category_id: str) -> Task:
        result = await self._mutate(
            "addTaskToCategory",
            documents.ADD_TASK_TO_CATEGORY,
            {"taskId": task_id, "categoryId": category_id},
        )
        return Task.model_validate(result)

    async def remove_task_from_category(self, task_id: str, category_id: str) -> Task:
        result = await self._mutate(
            "removeTaskFromCategory",
            documents.REMOVE_TASK_FROM_CATEGORY,
            {"taskId": task_id, "categoryId": category_id},
        )
        return Task.model_validate(result)

    # --- Category mutations ---

    async def create_category(self, name: str, color: Optional[str] = None) -> Category:
        errors = category_input_errors(name, color)
        if errors:
            raise ValidationError(errors)

        category_input = {"name": name.strip()}
        if color:
            category_input["color"] = color
        result = await self._mutate(
            "createCategory", documents.CREATE_CATEGORY, {"input": category_input}
        )
        return Category.model_validate(result)

    async def update_category(
        self, category_id: str, name: Optional[str] = None, color: Optional[str] = None
    ) -> Category:
        errors = category_input_errors(name, color, partial=True)
        if errors:
            raise ValidationError(errors)

        category_input = {}
        if name is not None:
            category_input["name"] = name.strip()
        if color is not None:
            category_input["color"] = color
        result = await self._mutate(
            "updateCategory",
            documents.UPDATE_CATEGORY,
            {"id": category_id, "input": category_input},
        )
        return Category.model_validate(result)

    async def delete_category(self, category_id: str) -> bool:
        return await self._mutate("deleteCategory", documents.DELETE_CATEGORY, {"id": category_id})

    # --- Derived views ---

    def get_filtered_tasks(self, filters: Optional[TaskFilters] = None, **criteria: Any) -> List[Task]:
        if filters is None:
            filters = TaskFilters(**criteria)
        return views.filter_tasks(self.tasks, filters)

    def preview_task_stats(self, now: Optional[datetime] = None) -> TaskStats:
        return views.preview_task_stats(self.tasks, now)

    def get_categories_with_task_count(self) -> List[CategoryWithCount]:
        return views.categories_with_task_count(self.categories, self.tasks)

    def is_task_overdue(self, task: Task, now: Optional[datetime] = None) -> bool:
        return views.is_task_overdue(task, now)

    def is_task_due_today(self, task: Task, now: Optional[datetime] = None) -> bool:
        return views.is_task_due_today(task, now)
