"""
User model - owner of tasks and categories
"""
from sqlalchemy import Column, Integer, String, DateTime
from taskmaster.database import Base
from taskmaster.utils.helpers import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
