"""
Task predicates and aggregate statistics.

Works on anything exposing ``status``, ``due_date`` (date or None) and
``updated_at`` (naive UTC datetime): ORM rows on the server and the parsed
client models alike, so the server totals and the client preview are
computed by the same code.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, time
from typing import Iterable, Optional

from taskmaster.enums import TaskStatus
from taskmaster.utils.helpers import utcnow, to_naive_utc


@dataclass
class TaskStatsData:
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    completed_today: int = 0
    overdue: int = 0
    today_tasks: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _now(now: Optional[datetime]) -> datetime:
    return to_naive_utc(now) if now is not None else utcnow()


def is_task_overdue(task, now: Optional[datetime] = None) -> bool:
    """
    Due date strictly before the current moment and not completed. A due
    date stands for the start of that day (UTC).
    """
    if task.due_date is None or task.status == TaskStatus.COMPLETED:
        return False
    return datetime.combine(task.due_date, time.min) < _now(now)


def is_task_due_today(task, now: Optional[datetime] = None) -> bool:
    """Calendar-day comparison against today's UTC date; status is ignored"""
    if task.due_date is None:
        return False
    return task.due_date.isoformat() == _now(now).date().isoformat()


def compute_task_stats(tasks: Iterable, now: Optional[datetime] = None) -> TaskStatsData:
    current = _now(now)
    today = current.date()
    stats = TaskStatsData()

    for task in tasks:
        stats.total += 1
        if task.status == TaskStatus.COMPLETED:
            stats.completed += 1
            if task.updated_at is not None and to_naive_utc(task.updated_at).date() == today:
                stats.completed_today += 1
        elif task.status == TaskStatus.TODO:
            stats.pending += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            stats.in_progress += 1

        if is_task_overdue(task, current):
            stats.overdue += 1
        if task.status != TaskStatus.COMPLETED and task.due_date == today:
            stats.today_tasks += 1

    return stats
