"""Column types that work on both PostgreSQL and SQLite (tests)."""

from sqlalchemy import JSON
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB

JSONType = JSON().with_variant(JSONB, "postgresql")


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


def str_enum(enum_cls, name: str) -> SAEnum:
    """Enum column stored as its string value (VARCHAR, no native DB type)."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=False,
        values_callable=enum_values,
        length=32,
    )
