"""
SQLAlchemy declarative base for authorization models.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all authorization SQLAlchemy models.

    Tenant-owned tables carry an ``organization_id`` foreign key; the
    super-principal is never represented by a row in any of them.
    """

    pass
