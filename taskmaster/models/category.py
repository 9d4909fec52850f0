"""
Category model - user-defined, colored task labels
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import validates
from taskmaster.database import Base
from taskmaster.config import get_settings
from taskmaster.utils.helpers import utcnow

settings = get_settings()


def category_name_key(name: str) -> str:
    """Case-insensitive comparison key for a category name (full Unicode folding)"""
    return name.strip().casefold()


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    name_key = Column(String, nullable=False)
    color = Column(String(7), nullable=False, default=settings.DEFAULT_CATEGORY_COLOR)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_category_user_name_key"),
    )

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = category_name_key(value)
        return value
