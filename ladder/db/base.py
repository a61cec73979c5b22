"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Invariants:
    - All models inherit from Base
    - Base is the single source of truth for table metadata

Design Decisions:
    - Separate file for Base: avoids circular imports between models
    - Enums stored by value as VARCHAR (native_enum=False): no ALTER TYPE when a
      status is added, identical behaviour on SQLite and PostgreSQL
"""

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ladder ORM models."""
    pass


def str_enum(enum_cls: type[enum.Enum]) -> SAEnum:
    """Store a str Enum by value in a plain VARCHAR, load it back as the member."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )
