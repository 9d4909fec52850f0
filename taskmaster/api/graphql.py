"""
GraphQL API - queries and mutations for tasks, categories and task stats
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import strawberry
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry import UNSET
from strawberry.fastapi import BaseContext, GraphQLRouter
from strawberry.types import Info

from taskmaster import enums
from taskmaster.api.auth import get_current_user
from taskmaster.api.graphql_types import (
    Category,
    CreateCategoryInput,
    CreateTaskInput,
    Task,
    TaskStats,
    UpdateCategoryInput,
    UpdateTaskInput,
    User,
)
from taskmaster.config import get_settings
from taskmaster.database import get_db
from taskmaster.models.user import User as UserModel
from taskmaster.services import task_store
from taskmaster.services.task_store import TaskStoreError
from taskmaster.utils.helpers import parse_date
from taskmaster.utils.task_rules import TaskStatsData

settings = get_settings()
logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphQLContext(BaseContext):
    """Per-request context: the request session and the authenticated user"""

    def __init__(self, db: AsyncSession, user_id: int, email: str):
        super().__init__()
        self.db = db
        self.user_id = user_id
        self.email = email
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self):
        # Sibling query fields resolve concurrently; one AsyncSession can't.
        async with self._lock:
            yield self.db


async def get_context(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
) -> GraphQLContext:
    return GraphQLContext(db=db, user_id=current_user.id, email=current_user.email)


# --- Helpers ---

def _parse_id(value: Any, kind: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {kind} id: {value}")


async def _read_with_fallback(
    action: str, read: Callable[[], Awaitable[T]], fallback: Callable[[], T]
) -> T:
    """Read paths degrade to an empty value instead of failing the query"""
    try:
        return await read()
    except TaskStoreError as e:
        logger.error(f"Error fetching {action}: {e}")
        return fallback()


def _task_updates(data: UpdateTaskInput) -> Dict[str, Any]:
    updates: Dict[str, Any] = {}
    if data.title is not UNSET and data.title is not None:
        updates["title"] = data.title
    if data.description is not UNSET:
        updates["description"] = data.description or None
    if data.status is not UNSET and data.status is not None:
        updates["status"] = enums.TaskStatus(data.status.value)
    if data.priority is not UNSET and data.priority is not None:
        updates["priority"] = enums.Priority(data.priority.value)
    if data.due_date is not UNSET:
        updates["due_date"] = parse_date(data.due_date)
    return updates


def _category_updates(data: UpdateCategoryInput) -> Dict[str, Any]:
    updates: Dict[str, Any] = {}
    if data.name is not UNSET and data.name is not None:
        updates["name"] = data.name
    if data.color is not UNSET:
        updates["color"] = data.color
    return updates


# --- Queries ---

@strawberry.type
class Query:
    @strawberry.field
    async def user(self, info: Info) -> User:
        ctx: GraphQLContext = info.context
        return User(id=strawberry.ID(str(ctx.user_id)), email=ctx.email)

    @strawberry.field
    async def tasks(self, info: Info) -> List[Task]:
        ctx: GraphQLContext = info.context

        async def read():
            async with ctx.session() as db:
                views = await task_store.list_tasks(db, ctx.user_id)
            return [Task.from_view(v) for v in views]

        return await _read_with_fallback("tasks", read, list)

    @strawberry.field
    async def task(self, info: Info, id: strawberry.ID) -> Optional[Task]:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            view = await task_store.get_task(db, ctx.user_id, _parse_id(id, "task"))
        return Task.from_view(view) if view else None

    @strawberry.field
    async def categories(self, info: Info) -> List[Category]:
        ctx: GraphQLContext = info.context

        async def read():
            async with ctx.session() as db:
                rows = await task_store.list_categories(db, ctx.user_id)
            return [Category.from_model(c) for c in rows]

        return await _read_with_fallback("categories", read, list)

    @strawberry.field
    async def task_stats(self, info: Info) -> TaskStats:
        ctx: GraphQLContext = info.context

        async def read():
            async with ctx.session() as db:
                data = await task_store.get_task_stats(db, ctx.user_id)
            return TaskStats.from_data(data)

        return await _read_with_fallback(
            "task stats", read, lambda: TaskStats.from_data(TaskStatsData())
        )


# --- Mutations ---

@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_task(self, info: Info, input: CreateTaskInput) -> Task:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            view = await task_store.create_task(
                db,
                ctx.user_id,
                title=input.title,
                description=input.description,
                priority=enums.Priority(input.priority.value) if input.priority else None,
                due_date=parse_date(input.due_date),
                category_ids=[_parse_id(i, "category") for i in input.category_ids or []],
            )
        return Task.from_view(view)

    @strawberry.mutation
    async def update_task(self, info: Info, id: strawberry.ID, input: UpdateTaskInput) -> Task:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            view = await task_store.update_task(
                db, ctx.user_id, _parse_id(id, "task"), _task_updates(input)
            )
        return Task.from_view(view)

    @strawberry.mutation
    async def delete_task(self, info: Info, id: strawberry.ID) -> bool:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            return await task_store.delete_task(db, ctx.user_id, _parse_id(id, "task"))

    @strawberry.mutation
    async def create_category(self, info: Info, input: CreateCategoryInput) -> Category:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            category = await task_store.create_category(
                db, ctx.user_id, name=input.name, color=input.color
            )
        return Category.from_model(category)

    @strawberry.mutation
    async def update_category(
        self, info: Info, id: strawberry.ID, input: UpdateCategoryInput
    ) -> Category:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            category = await task_store.update_category(
                db, ctx.user_id, _parse_id(id, "category"), _category_updates(input)
            )
        return Category.from_model(category)

    @strawberry.mutation
    async def delete_category(self, info: Info, id: strawberry.ID) -> bool:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            return await task_store.delete_category(db, ctx.user_id, _parse_id(id, "category"))

    @strawberry.mutation
    async def add_task_to_category(
        self, info: Info, task_id: strawberry.ID, category_id: strawberry.ID
    ) -> Task:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            view = await task_store.add_task_to_category(
                db, ctx.user_id, _parse_id(task_id, "task"), _parse_id(category_id, "category")
            )
        return Task.from_view(view)

    @strawberry.mutation
    async def remove_task_from_category(
        self, info: Info, task_id: strawberry.ID, category_id: strawberry.ID
    ) -> Task:
        ctx: GraphQLContext = info.context
        async with ctx.session() as db:
            view = await task_store.remove_task_from_category(
                db, ctx.user_id, _parse_id(task_id, "task"), _parse_id(category_id, "category")
            )
        return Task.from_view(view)


schema = strawberry.Schema(query=Query, mutation=Mutation)

router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.DEBUG else None,
)
