"""
SQLAlchemy Base for SupportDesk.

Usage:
    from supportdesk.models.base import Base

    class MyModel(Base):
        __tablename__ = "my_table"
        ...
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by every SupportDesk model."""


__all__ = ["Base"]
