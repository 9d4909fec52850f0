"""
Task model - personal tasks and their category links
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum as SQLEnum
from taskmaster.database import Base
from taskmaster.enums import TaskStatus, Priority
from taskmaster.utils.helpers import utcnow


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLEnum(TaskStatus, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.TODO,
    )
    priority = Column(
        SQLEnum(Priority, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=Priority.MEDIUM,
    )
    due_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class TaskCategory(Base):
    """Join row linking one task to one category"""
    __tablename__ = "task_categories"

    task_id = Column(Integer, ForeignKey("tasks.id"), primary_key=True)
    category_id = Column(Integer, ForeignKey("categories.id"), primary_key=True, index=True)
