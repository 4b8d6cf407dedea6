"""In-memory directory and datastore fakes for testing."""

from __future__ import annotations

from typing import Any, Sequence

from ldap_utility.directory import DirectoryEntry, LdapConfig

__all__ = ["JOHN_DN", "JOHN_FILTER", "FakeDirectoryClient", "FakeUserStore", "make_config"]

JOHN_DN = "cn=john.doe,ou=people,dc=example,dc=com"
JOHN_FILTER = "(uid=john.doe)"

INVALID_CREDENTIALS = (49, "Invalid credentials")
NO_SUCH_OBJECT = (32, "No such object")


class FakeDirectoryClient:
    """Directory capability backed by dictionaries.

    Every capability call is recorded in ``calls`` as ``(name, args)``.
    ``fail_next`` forces the next call of an operation to fail with the given
    ``(code, message)``; code 0 reproduces a failure sentinel without a
    directory error.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.passwords: dict[str, str] = {}
        self.entries: dict[str, dict[str, list[Any]]] = {}
        self.filters: dict[str, str] = {}
        self.fail_next: dict[str, tuple[int, str]] = {}
        self.error: tuple[int, str] = (0, "")
        self.closed = False

    def add_user(self, dn: str, password: str, search_filter: str, **attributes: Any) -> None:
        self.passwords[dn] = password
        self.entries[dn] = {k: v if isinstance(v, list) else [v] for k, v in attributes.items()}
        self.filters[dn] = search_filter

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _forced(self, name: str) -> bool:
        if name in self.fail_next:
            self.error = self.fail_next.pop(name)
            return True
        self.error = (0, "")
        return False

    def _select(self, dn: str, attributes: Sequence[str]) -> DirectoryEntry:
        wanted = {a.lower() for a in attributes}
        attrs = {k: v for k, v in self.entries[dn].items() if not wanted or k.lower() in wanted}
        return DirectoryEntry(dn=dn, attributes=attrs)

    def connect(self, host: str, port: int) -> str:
        self.calls.append(("connect", (host, port)))
        return f"ldap://{host}:{port}"

    def set_option(self, link: Any, key: str, value: Any) -> bool:
        self.calls.append(("set_option", (key, value)))
        return not self._forced("set_option")

    def start_tls(self, link: Any) -> bool:
        self.calls.append(("start_tls", ()))
        return not self._forced("start_tls")

    def bind(self, link: Any, dn: str, password: str) -> bool:
        self.calls.append(("bind", (dn, password)))
        if self._forced("bind"):
            return False
        if dn in self.passwords and self.passwords[dn] == password:
            return True
        self.error = INVALID_CREDENTIALS
        return False

    def read(self, link: Any, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any:
        self.calls.append(("read", (base_dn, search_filter, list(attributes))))
        if self._forced("read"):
            return False
        if base_dn not in self.entries:
            self.error = NO_SUCH_OBJECT
            return False
        if self.filters[base_dn] != search_filter:
            return False
        return [self._select(base_dn, attributes)]

    def search(self, link: Any, base_dn: str, search_filter: str, attributes: Sequence[str]) -> Any:
        self.calls.append(("search", (base_dn, search_filter, list(attributes))))
        if self._forced("search"):
            return False
        found = [
            self._select(dn, attributes)
            for dn in self.entries
            if dn.endswith(base_dn) and self.filters[dn] == search_filter
        ]
        return found or False

    def get_entries(self, link: Any, result: Any) -> list[DirectoryEntry]:
        return list(result or [])

    def error_code(self, link: Any) -> int:
        return self.error[0]

    def error_message(self, link: Any) -> str:
        return self.error[1]

    def close(self, link: Any) -> bool:
        self.calls.append(("close", ()))
        self.closed = True
        return True


class FakeUserStore:
    """Application datastore keyed by (model, field, value)."""

    def __init__(self, records: dict[tuple[str, str, Any], dict] | None = None) -> None:
        self.records = records or {}
        self.lookups: list[tuple[str, str, Any]] = []

    def find_by_field(self, model_name: str, field_name: str, value: Any) -> dict | None:
        self.lookups.append((model_name, field_name, value))
        record = self.records.get((model_name, field_name, value))
        return dict(record) if record is not None else None


def make_config(**overrides: Any) -> LdapConfig:
    """Build a test configuration from plugin-style camelCase keys."""
    data: dict[str, Any] = {
        "host": "ldap.example.com",
        "baseDn": "dc=example,dc=com",
        "commonBindDn": "cn=service,dc=example,dc=com",
        "commonBindPassword": "service-secret",
        "auth": {
            "bindDn": "cn={username},ou=people,dc=example,dc=com",
            "searchFilter": "(uid={username})",
        },
    }
    data.update(overrides)
    return LdapConfig.model_validate(data)
