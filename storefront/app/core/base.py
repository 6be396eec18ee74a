"""
SQLAlchemy Base class for all models.

Kept apart from database.py so models can import Base
without creating the engine (tests swap in their own engine).
"""
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass
