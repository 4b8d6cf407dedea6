from __future__ import annotations

import logging
from typing import Any, Protocol

from ...directory import LdapConfig, LdapHandler
from ...exceptions import UsageError

log = logging.getLogger(__name__)


class UserStore(Protocol):
    """Application datastore lookup used to cross-reference directory users."""

    def find_by_field(self, model_name: str, field_name: str, value: Any) -> dict | None: ...


class LdapAuthenticate:
    """LDAP authentication adapter.

    Binds as the user, reads the directory entry and, when
    ``query_datasource`` is set, looks up the matching application user by
    mailbox. Settings:

    - ``query_datasource`` - query the application datastore after the
      directory bind (default true)
    - ``user_model`` - datastore model to query (default ``Users``)
    - ``fields.username`` - model field compared with the mailbox
      (default ``email``)
    - ``auth.callback`` - ``callback(directory_result, record)`` whose return
      value replaces the datastore record
    """

    def __init__(
        self,
        config: LdapConfig,
        user_store: UserStore | None = None,
        handler: LdapHandler | None = None,
    ) -> None:
        if config.query_datasource and user_store is None:
            raise UsageError("query_datasource is enabled but no user store was given.")
        self.config = config
        self.user_store = user_store
        self.ldap = handler if handler is not None else LdapHandler(config)

    def authenticate(self, username: str, password: str) -> dict | None:
        if not username or not password:
            raise UsageError("Empty username or password")
        return self.find_user(username, password)

    def find_user(self, username: str, password: str) -> dict | None:
        details = self.ldap.authenticate_user(username, password)
        if details is None or not details.first_value("mail"):
            return None

        if not self.config.query_datasource:
            return details.as_dict()

        mail = details.first_value("mail")
        if details.role_suffix:
            email = self.ldap.add_suffix_to_mailbox(mail, details.role_suffix)
        else:
            email = mail

        user = self.user_store.find_by_field(self.config.user_model, self.config.field_map.username, email)
        callback = self.config.auth.callback
        if callback is not None:
            user = callback(details, user)
        if not user:
            log.info("Directory user %s has no application record", email)
            return None

        user = dict(user)
        user["ldap_cn"] = details.first_value("cn")
        return user

    def close(self) -> None:
        close = getattr(self.ldap, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "LdapAuthenticate":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
