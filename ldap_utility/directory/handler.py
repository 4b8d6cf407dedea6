from __future__ import annotations

import logging
from typing import Any, Sequence

from ..exceptions import DirectoryError, UsageError
from .client import OPT_PROTOCOL_VERSION, DirectoryClient, Ldap3DirectoryClient
from .models import BindState, DirectoryResult, LdapConfig
from .utils import (
    add_suffix_to_mailbox,
    escape_dn_value,
    escape_ldap_filter_value,
    format_template,
    split_role_suffix,
)

log = logging.getLogger(__name__)

SEARCH = "search"
READ = "read"

USER_ATTRIBUTES = ("cn", "sn", "mail")


class LdapHandler:
    """One directory connection plus the authentication workflow built on it.

    The connection is opened at construction (connect, protocol version,
    optional StartTLS) and released only by :meth:`close`. Operations are
    strictly sequential; a handler is not shared between threads.
    """

    def __init__(self, config: LdapConfig, client: DirectoryClient | None = None) -> None:
        self.config = config
        self.client = client or Ldap3DirectoryClient(
            use_ssl=config.use_ssl,
            tls_validate=config.tls_validate,
            ca_certs_file=config.ca_certs_file,
            connect_timeout=config.connect_timeout,
            hide_errors=config.hide_errors,
        )
        self._bind_state = BindState.UNBOUND
        self._closed = False

        self._link = self.client.connect(config.host, config.port)
        self.set_option(OPT_PROTOCOL_VERSION, config.protocol_version)
        self._start_tls()

    # connection setup

    def set_option(self, key: str, value: Any) -> bool:
        return self.client.set_option(self._link, key, value)

    def _start_tls(self) -> None:
        if not self.config.start_tls:
            return
        if not self.client.start_tls(self._link):
            self.raise_on_errors()

    # binding

    @property
    def bind_state(self) -> BindState:
        return self._bind_state

    @property
    def bound(self) -> bool:
        return self._bind_state is not BindState.UNBOUND

    def bind_using_credentials(self, bind_dn: str, password: str,
                               state: BindState = BindState.USER) -> None:
        """Bind as *bind_dn*.

        Raises :class:`DirectoryError` on failure, unless the directory
        reports error code 0, in which case the connection simply stays
        unbound.
        """
        if self.client.bind(self._link, bind_dn, password):
            self._bind_state = state
            return
        self._bind_state = BindState.UNBOUND
        log.info("LDAP bind failed for %s (code %s)", bind_dn, self.get_error_no())
        self.raise_on_errors()

    def bind_using_service_account(self) -> None:
        self.bind_using_credentials(
            self.config.common_bind_dn,
            self.config.common_bind_password,
            state=BindState.SERVICE,
        )

    # authentication workflow

    def get_bind_dn(self, username: str) -> str:
        return format_template(self.config.auth.bind_dn, escape_dn_value(username))

    def get_relative_dn(self, username: str) -> str:
        return format_template(self.config.auth.search_filter, escape_ldap_filter_value(username))

    def authenticate_user(self, username: str, password: str) -> DirectoryResult | None:
        """Bind as the user and read their entry.

        Returns ``None`` when the user is not found. Bind and directory
        failures are reported the same way, so callers cannot tell a wrong
        password from an unreachable directory.
        """
        username, suffix = split_role_suffix(username)
        bind_dn = self.get_bind_dn(username)
        try:
            self.bind_using_credentials(bind_dn, password)
            if not self.bound:
                # Failed bind with error code 0: nothing raised, nothing bound.
                return None
            user = self.find(
                READ,
                search_filter=self.get_relative_dn(username),
                base_dn=bind_dn,
                attributes=USER_ATTRIBUTES,
            )
        except DirectoryError as exc:
            log.debug("LDAP authentication failed for %s: %s", bind_dn, exc)
            return None

        if user.count == 0:
            return None
        if suffix:
            user.role_suffix = suffix
        return user

    @staticmethod
    def add_suffix_to_mailbox(email: str, suffix: str) -> str:
        return add_suffix_to_mailbox(email, suffix)

    # queries

    def find(
        self,
        search_type: str,
        search_filter: str | None = None,
        base_dn: str | None = None,
        attributes: Sequence[str] | None = None,
    ) -> DirectoryResult:
        if not self.bound:
            raise UsageError("Unable to find server binding.")
        result = self.get_result_identifier(search_type, search_filter, base_dn, attributes)
        return DirectoryResult(entries=self.get_all_entries(result))

    def get_result_identifier(
        self,
        search_type: str,
        search_filter: str | None = None,
        base_dn: str | None = None,
        attributes: Sequence[str] | None = None,
    ) -> Any:
        base_dn = base_dn if base_dn is not None else self.config.base_dn
        if search_filter is None:
            raise UsageError("Filter field not set in search.")
        attributes = list(attributes or [])

        if search_type == SEARCH:
            result = self.search(base_dn, search_filter, attributes)
        elif search_type == READ:
            result = self.read(base_dn, search_filter, attributes)
        else:
            raise UsageError(f"Unknown search type - {search_type}")

        if result is False:
            self.raise_on_errors()
        return result

    def read(self, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any:
        return self.client.read(self._link, base_dn, search_filter, attributes)

    def search(self, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any:
        return self.client.search(self._link, base_dn, search_filter, attributes)

    def get_all_entries(self, result: Any):
        if result is False:
            return []
        return self.client.get_entries(self._link, result)

    # errors

    def raise_on_errors(self) -> None:
        """Translate the connection's current error into :class:`DirectoryError`.

        Error code 0 means "no error" and never raises.
        """
        code = self.get_error_no()
        if code != 0:
            raise DirectoryError(self.get_error(), code)

    def get_error_no(self) -> int:
        return self.client.error_code(self._link)

    def get_error(self) -> str:
        return self.client.error_message(self._link)

    # accessors / lifecycle

    @property
    def base_dn(self) -> str:
        return self.config.base_dn

    @property
    def connection(self) -> Any:
        return self._link

    def close(self) -> bool:
        if self._closed:
            return True
        self._closed = True
        self._bind_state = BindState.UNBOUND
        return self.client.close(self._link)

    def __enter__(self) -> "LdapHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
