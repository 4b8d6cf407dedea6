from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from .db import SessionLocal
from .exceptions import UsageError
from .models import User

# userModel name -> ORM class
MODEL_REGISTRY: dict[str, type] = {
    "Users": User,
}


@contextmanager
def db_session() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def record_to_dict(obj: Any) -> dict:
    """Plain dict of an ORM row's column values (JSON-friendly datetimes)."""
    out: dict[str, Any] = {}
    for col in inspect(obj).mapper.column_attrs:
        value = getattr(obj, col.key)
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        out[col.key] = value
    return out


class SqlUserStore:
    """Datastore lookup for :class:`LdapAuthenticate`, backed by SQLAlchemy."""

    def __init__(self, db: Session, registry: dict[str, type] | None = None) -> None:
        self.db = db
        self.registry = registry if registry is not None else MODEL_REGISTRY

    def find_by_field(self, model_name: str, field_name: str, value: Any) -> dict | None:
        model = self.registry.get(model_name)
        if model is None:
            raise UsageError(f"Unknown user model: {model_name}")
        if field_name not in inspect(model).column_attrs:
            raise UsageError(f"Unknown field {field_name} on model {model_name}")
        column = getattr(model, field_name)
        row = self.db.scalar(select(model).where(column == value).limit(1))
        return record_to_dict(row) if row is not None else None
