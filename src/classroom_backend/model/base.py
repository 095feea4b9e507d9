from uuid import uuid4
from sqlalchemy import Enum, MetaData
from sqlalchemy.orm import declarative_base

from classroom_backend.interface.enums import enum_values

metadata = MetaData()
Base = declarative_base(metadata=metadata)


def new_id() -> str:
    return str(uuid4())


def enum_column(enum_cls, name: str) -> Enum:
    """Database enum storing the member values ("Term 1", "approved", ...)."""
    return Enum(enum_cls, name=name, values_callable=enum_values, validate_strings=True)
