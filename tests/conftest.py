from __future__ import annotations

import os
import tempfile

# Settings are read at import time by the db module.
_tmp_dir = tempfile.mkdtemp(prefix="ldap_utility_tests_")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SQLITE_PATH", os.path.join(_tmp_dir, "app.db"))

import pytest  # noqa: E402

from ldap_utility.directory import LdapConfig, LdapHandler  # noqa: E402
from tests.support.ldap import (  # noqa: E402
    JOHN_DN,
    JOHN_FILTER,
    FakeDirectoryClient,
    FakeUserStore,
    make_config,
)


@pytest.fixture
def config() -> LdapConfig:
    return make_config()


@pytest.fixture
def directory() -> FakeDirectoryClient:
    client = FakeDirectoryClient()
    client.add_user(
        JOHN_DN,
        "secret",
        JOHN_FILTER,
        cn="john.doe",
        sn="Doe",
        mail="john.doe@example.com",
        telephoneNumber="555-0100",
    )
    client.add_user(
        "cn=service,dc=example,dc=com",
        "service-secret",
        "(objectClass=*)",
        cn="service",
    )
    return client


@pytest.fixture
def handler(config: LdapConfig, directory: FakeDirectoryClient) -> LdapHandler:
    return LdapHandler(config, client=directory)


@pytest.fixture
def user_store() -> FakeUserStore:
    return FakeUserStore()
