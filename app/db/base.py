"""Declarative base shared by the SQL document store's tables."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the ``documents`` table mapping."""
