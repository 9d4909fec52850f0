"""
Datastore accessor tests - user scoping, transactional writes, link cleanup.
"""
from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from taskmaster.enums import TaskStatus, Priority
from taskmaster.models.task import Task, TaskCategory
from taskmaster.services import task_store
from taskmaster.services.task_store import ConflictError, NotFoundError, TaskStoreError
from taskmaster.utils.helpers import utcnow


async def _links(session_factory, **criteria):
    async with session_factory() as session:
        query = select(TaskCategory)
        for column, value in criteria.items():
            query = query.where(getattr(TaskCategory, column) == value)
        result = await session.execute(query)
        return result.scalars().all()


# ===================== TASKS =====================


async def test_create_task_defaults(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="  Write report ")

    assert view.task.id is not None
    assert view.task.title == "Write report"
    assert view.task.status == TaskStatus.TODO
    assert view.task.priority == Priority.MEDIUM
    assert view.task.user_id == seed_data["user_id"]
    assert view.task.created_at == view.task.updated_at
    assert view.category_ids == []


async def test_create_task_with_categories(db_session, seed_data):
    uid = seed_data["user_id"]
    work = await task_store.create_category(db_session, uid, "Work", "#EF4444")
    home = await task_store.create_category(db_session, uid, "Home")

    view = await task_store.create_task(
        db_session, uid, title="Plan", priority=Priority.HIGH,
        due_date=date(2026, 11, 1), category_ids=[home.id, work.id, work.id],
    )

    assert view.category_ids == [work.id, home.id]
    assert view.task.priority == Priority.HIGH
    assert view.task.due_date == date(2026, 11, 1)


async def test_create_task_rejects_empty_title(db_session, seed_data):
    with pytest.raises(ValueError, match="title is required"):
        await task_store.create_task(db_session, seed_data["user_id"], title="  ")


async def test_create_task_with_foreign_category_rolls_back(db_session, session_factory, seed_data):
    foreign = await task_store.create_category(db_session, seed_data["other_id"], "Theirs")
    foreign_id = foreign.id

    with pytest.raises(NotFoundError):
        await task_store.create_task(
            db_session, seed_data["user_id"], title="Orphan", category_ids=[foreign_id]
        )

    async with session_factory() as session:
        result = await session.execute(select(Task).where(Task.title == "Orphan"))
        assert result.scalar_one_or_none() is None
    assert await _links(session_factory, category_id=foreign_id) == []


async def test_list_tasks_newest_first_and_scoped(db_session, seed_data):
    uid = seed_data["user_id"]
    first = await task_store.create_task(db_session, uid, title="First")
    second = await task_store.create_task(db_session, uid, title="Second")
    await task_store.create_task(db_session, seed_data["other_id"], title="Not mine")

    views = await task_store.list_tasks(db_session, uid)

    assert [v.task.id for v in views] == [second.task.id, first.task.id]


async def test_get_task_returns_none_for_other_user(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="Private")

    assert await task_store.get_task(db_session, seed_data["other_id"], view.task.id) is None
    assert await task_store.get_task(db_session, seed_data["user_id"], 9999) is None
    found = await task_store.get_task(db_session, seed_data["user_id"], view.task.id)
    assert found.task.title == "Private"


async def test_update_task_is_partial(db_session, seed_data):
    uid = seed_data["user_id"]
    view = await task_store.create_task(
        db_session, uid, title="Draft", description="keep me", due_date=date(2026, 12, 1)
    )
    created_updated_at = view.task.updated_at

    updated = await task_store.update_task(
        db_session, uid, view.task.id, {"title": "Final", "status": "in_progress"}
    )

    assert updated.task.title == "Final"
    assert updated.task.status == TaskStatus.IN_PROGRESS
    assert updated.task.description == "keep me"
    assert updated.task.due_date == date(2026, 12, 1)
    assert updated.task.priority == Priority.MEDIUM
    assert updated.task.updated_at >= created_updated_at


async def test_update_task_can_clear_optional_fields(db_session, seed_data):
    uid = seed_data["user_id"]
    view = await task_store.create_task(db_session, uid, title="T", description="d", due_date=date(2026, 12, 1))

    updated = await task_store.update_task(db_session, uid, view.task.id, {"description": None, "due_date": None})

    assert updated.task.description is None
    assert updated.task.due_date is None


async def test_update_task_of_other_user_fails(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="Mine")

    with pytest.raises(NotFoundError):
        await task_store.update_task(db_session, seed_data["other_id"], view.task.id, {"title": "Hijacked"})


async def test_update_task_rejects_unknown_fields(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="Mine")

    with pytest.raises(ValueError, match="Unknown task fields"):
        await task_store.update_task(db_session, seed_data["user_id"], view.task.id, {"user_id": 2})


async def test_delete_task_removes_links(db_session, session_factory, seed_data):
    uid = seed_data["user_id"]
    work = await task_store.create_category(db_session, uid, "Work")
    view = await task_store.create_task(db_session, uid, title="Gone", category_ids=[work.id])
    task_id = view.task.id

    assert await task_store.delete_task(db_session, uid, task_id) is True

    assert await _links(session_factory, task_id=task_id) == []
    assert await task_store.get_task(db_session, uid, task_id) is None
    assert await task_store.delete_task(db_session, uid, task_id) is False


async def test_delete_task_of_other_user_returns_false(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="Mine")

    assert await task_store.delete_task(db_session, seed_data["other_id"], view.task.id) is False
    assert await task_store.get_task(db_session, seed_data["user_id"], view.task.id) is not None


async def test_add_and_remove_category_link(db_session, seed_data):
    uid = seed_data["user_id"]
    work = await task_store.create_category(db_session, uid, "Work")
    view = await task_store.create_task(db_session, uid, title="Linkable")

    linked = await task_store.add_task_to_category(db_session, uid, view.task.id, work.id)
    assert linked.category_ids == [work.id]

    again = await task_store.add_task_to_category(db_session, uid, view.task.id, work.id)
    assert again.category_ids == [work.id]

    unlinked = await task_store.remove_task_from_category(db_session, uid, view.task.id, work.id)
    assert unlinked.category_ids == []


async def test_add_link_to_foreign_category_fails(db_session, seed_data):
    view = await task_store.create_task(db_session, seed_data["user_id"], title="Mine")
    foreign = await task_store.create_category(db_session, seed_data["other_id"], "Theirs")

    with pytest.raises(NotFoundError, match="Category"):
        await task_store.add_task_to_category(db_session, seed_data["user_id"], view.task.id, foreign.id)


async def test_category_ids_for_tasks_scoped(db_session, seed_data):
    uid = seed_data["user_id"]
    work = await task_store.create_category(db_session, uid, "Work")
    linked = await task_store.create_task(db_session, uid, title="Linked", category_ids=[work.id])
    bare = await task_store.create_task(db_session, uid, title="Bare")
    foreign = await task_store.create_task(db_session, seed_data["other_id"], title="Theirs")

    ids = await task_store.category_ids_for_tasks(
        db_session, uid, [linked.task.id, bare.task.id, foreign.task.id]
    )

    assert ids == {linked.task.id: [work.id], bare.task.id: []}


async def test_task_stats(db_session, seed_data):
    uid = seed_data["user_id"]
    now = utcnow()
    yesterday = now.date() - timedelta(days=1)
    await task_store.create_task(db_session, uid, title="Late", due_date=yesterday)
    done = await task_store.create_task(db_session, uid, title="Done")
    await task_store.update_task(db_session, uid, done.task.id, {"status": TaskStatus.COMPLETED})
    await task_store.create_task(db_session, seed_data["other_id"], title="Other", due_date=yesterday)

    stats = await task_store.get_task_stats(db_session, uid, now=now)

    assert stats.total == 2
    assert stats.completed == 1
    assert stats.pending == 1
    assert stats.completed_today == 1
    assert stats.overdue == 1


# ===================== CATEGORIES =====================


async def test_create_category_default_color(db_session, seed_data):
    category = await task_store.create_category(db_session, seed_data["user_id"], "Personal")
    assert category.color == "#3B82F6"


async def test_category_names_unique_case_insensitive(db_session, seed_data):
    uid = seed_data["user_id"]
    await task_store.create_category(db_session, uid, "Work")

    with pytest.raises(ConflictError):
        await task_store.create_category(db_session, uid, "wORK")

    # Another user may reuse the name
    theirs = await task_store.create_category(db_session, seed_data["other_id"], "work")
    assert theirs.id is not None


async def test_category_names_unique_beyond_ascii(db_session, seed_data):
    uid = seed_data["user_id"]
    await task_store.create_category(db_session, uid, "Épicerie")

    with pytest.raises(ConflictError):
        await task_store.create_category(db_session, uid, "épicerie")

    with pytest.raises(ConflictError):
        await task_store.create_category(db_session, uid, "ÉPICERIE")

    names = [c.name for c in await task_store.list_categories(db_session, uid)]
    assert names == ["Épicerie"]


async def test_duplicate_name_rejected_by_constraint(db_session, seed_data):
    # Two concurrent creates can both pass the lookup; the unique key catches the second
    uid = seed_data["user_id"]
    await task_store.create_category(db_session, uid, "Work")

    with patch.object(task_store, "_name_taken", new=AsyncMock(return_value=False)):
        with pytest.raises(ConflictError):
            await task_store.create_category(db_session, uid, "WORK")

    assert len(await task_store.list_categories(db_session, uid)) == 1


async def test_update_category_name_conflict(db_session, seed_data):
    uid = seed_data["user_id"]
    await task_store.create_category(db_session, uid, "Work")
    home = await task_store.create_category(db_session, uid, "Home")
    home_id = home.id

    with pytest.raises(ConflictError):
        await task_store.update_category(db_session, uid, home_id, {"name": "WORK"})

    renamed = await task_store.update_category(db_session, uid, home_id, {"name": "HOME", "color": "#10B981"})
    assert renamed.name == "HOME"
    assert renamed.color == "#10B981"


async def test_update_missing_category(db_session, seed_data):
    with pytest.raises(NotFoundError):
        await task_store.update_category(db_session, seed_data["user_id"], 4242, {"name": "X"})


async def test_get_category_scoped(db_session, seed_data):
    category = await task_store.create_category(db_session, seed_data["user_id"], "Work")

    found = await task_store.get_category(db_session, seed_data["user_id"], category.id)
    assert found.name == "Work"
    assert await task_store.get_category(db_session, seed_data["other_id"], category.id) is None


async def test_list_categories_oldest_first(db_session, seed_data):
    uid = seed_data["user_id"]
    a = await task_store.create_category(db_session, uid, "A")
    b = await task_store.create_category(db_session, uid, "B")
    await task_store.create_category(db_session, seed_data["other_id"], "C")

    categories = await task_store.list_categories(db_session, uid)

    assert [c.id for c in categories] == [a.id, b.id]


async def test_delete_category_unlinks_tasks(db_session, session_factory, seed_data):
    uid = seed_data["user_id"]
    work = await task_store.create_category(db_session, uid, "Work")
    home = await task_store.create_category(db_session, uid, "Home")
    view = await task_store.create_task(db_session, uid, title="Both", category_ids=[work.id, home.id])
    work_id = work.id

    assert await task_store.delete_category(db_session, uid, work_id) is True

    assert await _links(session_factory, category_id=work_id) == []
    refreshed = await task_store.get_task(db_session, uid, view.task.id)
    assert refreshed.category_ids == [home.id]
    assert await task_store.delete_category(db_session, uid, work_id) is False


# ===================== ERRORS =====================


async def test_database_errors_are_wrapped(db_session, seed_data):
    failure = OperationalError("SELECT", {}, Exception("disk I/O error"))

    with patch.object(db_session, "execute", new_callable=AsyncMock, side_effect=failure):
        with pytest.raises(TaskStoreError, match="Failed to fetch tasks"):
            await task_store.list_tasks(db_session, seed_data["user_id"])
