from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from ldap3 import ALL_ATTRIBUTES, BASE, SIMPLE, SUBTREE, SYNC, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException

from .models import DirectoryEntry

log = logging.getLogger(__name__)

OPT_PROTOCOL_VERSION = "protocol_version"

# Client-side failure with no server result (libldap's LDAP_SERVER_DOWN).
CLIENT_ERROR_CODE = -1


class DirectoryClient(Protocol):
    """Directory protocol capability consumed by :class:`LdapHandler`.

    Failing operations return ``False`` instead of raising; the reason is
    available from :meth:`error_code` / :meth:`error_message` afterwards.
    """

    def connect(self, host: str, port: int) -> Any: ...

    def set_option(self, link: Any, key: str, value: Any) -> bool: ...

    def start_tls(self, link: Any) -> bool: ...

    def bind(self, link: Any, dn: str, password: str) -> bool: ...

    def search(self, link: Any, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any: ...

    def read(self, link: Any, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any: ...

    def get_entries(self, link: Any, result: Any) -> list[DirectoryEntry]: ...

    def error_code(self, link: Any) -> int: ...

    def error_message(self, link: Any) -> str: ...

    def close(self, link: Any) -> bool: ...


@dataclass
class Ldap3Link:
    """An ldap3 connection plus the last client-side failure, if any."""

    connection: Connection
    failure: tuple[int, str] | None = field(default=None)


class Ldap3DirectoryClient:
    """:class:`DirectoryClient` backed by ldap3.

    ``hide_errors`` only changes how loudly failed calls are logged.
    """

    def __init__(
        self,
        *,
        use_ssl: bool = False,
        tls_validate: bool = False,
        ca_certs_file: str = "",
        connect_timeout: float | None = None,
        hide_errors: bool = False,
        client_strategy: str = SYNC,
    ) -> None:
        self.use_ssl = use_ssl
        self.tls_validate = tls_validate
        self.ca_certs_file = ca_certs_file
        self.connect_timeout = connect_timeout
        self.hide_errors = hide_errors
        self.client_strategy = client_strategy

    def _tls(self) -> Tls:
        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if self.tls_validate else ssl.CERT_NONE,
        }
        # Apply custom CA only when verification is enabled.
        if self.tls_validate and self.ca_certs_file:
            tls_kwargs["ca_certs_file"] = self.ca_certs_file
        return Tls(**tls_kwargs)

    def _report(self, link: Ldap3Link, operation: str) -> None:
        level = logging.DEBUG if self.hide_errors else logging.WARNING
        log.log(
            level,
            "LDAP %s failed: [%s] %s",
            operation,
            self.error_code(link),
            self.error_message(link),
        )

    def _fail(self, link: Ldap3Link, operation: str, exc: LDAPException) -> None:
        link.failure = (CLIENT_ERROR_CODE, str(exc) or exc.__class__.__name__)
        self._report(link, operation)

    def connect(self, host: str, port: int) -> Ldap3Link:
        server = Server(
            host=host,
            port=port,
            use_ssl=self.use_ssl,
            tls=self._tls(),
            connect_timeout=self.connect_timeout,
        )
        # Not opened here: start_tls or bind open the socket on first use.
        conn = Connection(
            server,
            auto_bind=False,
            client_strategy=self.client_strategy,
            raise_exceptions=False,
        )
        return Ldap3Link(connection=conn)

    def set_option(self, link: Ldap3Link, key: str, value: Any) -> bool:
        link.failure = None
        if key == OPT_PROTOCOL_VERSION and value in (2, 3):
            link.connection.version = value
            return True
        link.failure = (CLIENT_ERROR_CODE, f"Unsupported option {key}={value!r}")
        self._report(link, "set_option")
        return False

    def start_tls(self, link: Ldap3Link) -> bool:
        link.failure = None
        try:
            ok = bool(link.connection.start_tls())
        except LDAPException as exc:
            self._fail(link, "start_tls", exc)
            return False
        if not ok:
            self._report(link, "start_tls")
        return ok

    def bind(self, link: Ldap3Link, dn: str, password: str) -> bool:
        link.failure = None
        conn = link.connection
        conn.authentication = SIMPLE
        conn.user = dn
        conn.password = password
        try:
            ok = bool(conn.bind())
        except LDAPException as exc:
            self._fail(link, "bind", exc)
            return False
        if not ok:
            self._report(link, "bind")
        return ok

    def _query(self, link: Ldap3Link, operation: str, base_dn: str, search_filter: str,
               attributes: Sequence[str], scope: str) -> list[dict] | bool:
        link.failure = None
        conn = link.connection
        try:
            ok = conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=scope,
                attributes=list(attributes) or ALL_ATTRIBUTES,
            )
        except LDAPException as exc:
            self._fail(link, operation, exc)
            return False
        if not ok:
            # ldap3 also reports an empty result as False (with result code 0).
            if self.error_code(link) != 0:
                self._report(link, operation)
            return False
        return list(conn.response or [])

    def search(self, link: Ldap3Link, base_dn: str, search_filter: str,
               attributes: Sequence[str]) -> list[dict] | bool:
        return self._query(link, "search", base_dn, search_filter, attributes, SUBTREE)

    def read(self, link: Ldap3Link, base_dn: str, search_filter: str,
             attributes: Sequence[str]) -> list[dict] | bool:
        return self._query(link, "read", base_dn, search_filter, attributes, BASE)

    def get_entries(self, link: Ldap3Link, result: Any) -> list[DirectoryEntry]:
        if not result:
            return []
        entries: list[DirectoryEntry] = []
        for item in result:
            # Skip referrals and other non-entry responses.
            if item.get("type") != "searchResEntry":
                continue
            entries.append(DirectoryEntry(dn=item.get("dn", ""), attributes=dict(item.get("attributes") or {})))
        return entries

    def error_code(self, link: Ldap3Link) -> int:
        if link.failure is not None:
            return link.failure[0]
        res = link.connection.result or {}
        try:
            return int(res.get("result", 0) or 0)
        except (TypeError, ValueError):
            return CLIENT_ERROR_CODE

    def error_message(self, link: Ldap3Link) -> str:
        if link.failure is not None:
            return link.failure[1]
        res = link.connection.result or {}
        message = str(res.get("message") or "")
        desc = str(res.get("description") or "")
        if message and desc and message != desc:
            return f"{desc}: {message}"
        return message or desc

    def close(self, link: Ldap3Link) -> bool:
        link.failure = None
        try:
            return bool(link.connection.unbind())
        except LDAPException as exc:
            self._fail(link, "close", exc)
            return False
