"""SQLAlchemy models for users and learning content."""
from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    JSON,
    func,
)

from .session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    password_hash = Column(Text, nullable=False, default="")
    points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Section(Base):
    __tablename__ = "sections"

    id = Column(String(32), primary_key=True)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    # ordered list of {"compId": ..., "compType": ...}
    components = Column(JSON, nullable=False, default=list)
    # bumped on every components write; guards conditional updates
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(String(32), primary_key=True)
    title = Column(String(255), nullable=False, default="")
    question = Column(Text, nullable=False, default="")
    answers = Column(JSON, nullable=False, default=list)
    # back-reference only; the Section's components list owns the link
    parent_section = Column(String(32), index=True, nullable=False)
    date_created = Column(DateTime(timezone=True), nullable=False)
    date_updated = Column(DateTime(timezone=True), nullable=False)
