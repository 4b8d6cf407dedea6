from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from ldap_utility.db import make_engine, sqlite_url
from ldap_utility.exceptions import UsageError
from ldap_utility.models import Base, LoginAudit, User
from ldap_utility.repo import SqlUserStore, record_to_dict
from ldap_utility.services import audit_login


@pytest.fixture
def db():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        session.add_all(
            [
                User(email="john.doe@example.com", username="john.doe", role="admin"),
                User(email="john.doe+sales@example.com", username="john.doe", role="sales"),
            ]
        )
        session.commit()
        yield session
    engine.dispose()


def test_find_by_field(db):
    store = SqlUserStore(db)

    user = store.find_by_field("Users", "email", "john.doe+sales@example.com")

    assert user is not None
    assert user["role"] == "sales"
    assert user["is_enabled"] is True
    assert isinstance(user["created_at"], str)


def test_find_by_field_miss(db):
    assert SqlUserStore(db).find_by_field("Users", "email", "jane.roe@example.com") is None


def test_find_by_other_field(db):
    user = SqlUserStore(db).find_by_field("Users", "role", "admin")

    assert user["email"] == "john.doe@example.com"


def test_unknown_model(db):
    with pytest.raises(UsageError):
        SqlUserStore(db).find_by_field("Accounts", "email", "john.doe@example.com")


def test_unknown_field(db):
    with pytest.raises(UsageError):
        SqlUserStore(db).find_by_field("Users", "password", "secret")


def test_custom_registry(db):
    store = SqlUserStore(db, registry={"Accounts": User})

    assert store.find_by_field("Accounts", "username", "john.doe") is not None
    with pytest.raises(UsageError):
        store.find_by_field("Users", "email", "john.doe@example.com")


def test_record_to_dict():
    user = User(id=3, email="a@example.com", username="a", display_name="A", role="", is_enabled=False,
                created_at=datetime(2024, 1, 2, 3, 4, 5), updated_at=datetime(2024, 1, 2, 3, 4, 5))

    data = record_to_dict(user)

    assert data["id"] == 3
    assert data["is_enabled"] is False
    assert data["created_at"] == "2024-01-02T03:04:05"
    assert set(data) == {"id", "email", "username", "display_name", "role", "is_enabled", "created_at", "updated_at"}


def test_audit_login(db):
    audit_login(db, "john.doe", False, "127.0.0.1", "x" * 600, "invalid", "invalid-ldap-credentials")

    row = db.query(LoginAudit).one()
    assert row.success is False
    assert row.auth_type == "ldap"
    assert row.result_code == "invalid"
    assert len(row.user_agent) == 512


def test_sqlite_url_resolves_relative_paths(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    url = sqlite_url("data/users.db")

    assert url == f"sqlite:///{(tmp_path / 'data' / 'users.db').resolve().as_posix()}"
    assert (tmp_path / "data").is_dir()
    assert sqlite_url("") == f"sqlite:///{(tmp_path / 'data' / 'app.db').resolve().as_posix()}"
