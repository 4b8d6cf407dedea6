from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import USERNAME_PLACEHOLDER

# (directory result, datastore record or None) -> user record
UserCallback = Callable[..., Optional[dict]]


class AuthTemplates(BaseModel):
    """Per-user templates; ``{username}`` is replaced at authentication time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search_filter: str = Field(default="", alias="searchFilter")
    bind_dn: str = Field(default="", alias="bindDn")
    callback: Optional[UserCallback] = Field(default=None)

    @field_validator("search_filter", "bind_dn")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class FieldMap(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    username: str = Field(default="email")


class LdapConfig(BaseModel):
    """Directory connection and authentication settings.

    Accepts both the camelCase keys used in plugin-style configuration
    arrays (``baseDn``, ``startTLS``, ``auth.bindDn`` ...) and the snake_case
    field names. Frozen: a handler's configuration never changes once built.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str = Field(default="")
    port: int = Field(default=389, ge=1, le=65535)
    protocol_version: int = Field(default=3, alias="protocolVersion")
    base_dn: str = Field(default="", alias="baseDn")
    start_tls: bool = Field(default=False, alias="startTLS")
    use_ssl: bool = Field(default=False, alias="useSSL")
    tls_validate: bool = Field(default=False, alias="tlsValidate")
    ca_certs_file: str = Field(default="", alias="caCertsFile")
    connect_timeout: Optional[float] = Field(default=None, alias="connectTimeout", gt=0)
    hide_errors: bool = Field(default=False, alias="hideErrors")
    common_bind_dn: str = Field(default="", alias="commonBindDn")
    common_bind_password: str = Field(default="", alias="commonBindPassword", repr=False)

    query_datasource: bool = Field(default=True, alias="queryDatasource")
    user_model: str = Field(default="Users", alias="userModel")
    field_map: FieldMap = Field(default_factory=FieldMap, alias="fields")
    auth: AuthTemplates = Field(default_factory=AuthTemplates)

    @field_validator("host", "base_dn", "common_bind_dn", "user_model")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("protocol_version")
    @classmethod
    def _validate_protocol_version(cls, v: int) -> int:
        if v not in (2, 3):
            raise ValueError("LDAP protocol version must be 2 or 3.")
        return v

    @model_validator(mode="after")
    def _validate_required(self) -> "LdapConfig":
        if not self.host:
            raise ValueError("LDAP host is required.")
        if not self.base_dn:
            raise ValueError("LDAP base DN is required.")
        if not self.auth.bind_dn:
            raise ValueError("auth.bindDn template is required.")
        if USERNAME_PLACEHOLDER not in self.auth.bind_dn:
            raise ValueError(f"auth.bindDn template must contain {USERNAME_PLACEHOLDER}.")
        if not self.auth.search_filter:
            raise ValueError("auth.searchFilter template is required.")
        return self


class BindState(enum.Enum):
    UNBOUND = "unbound"
    SERVICE = "service"
    USER = "user"


@dataclass
class DirectoryEntry:
    dn: str
    attributes: dict[str, list[Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Attribute names are case-insensitive in LDAP; store them lower-cased.
        normalized: dict[str, list[Any]] = {}
        for name, value in self.attributes.items():
            if value is None:
                values: list[Any] = []
            elif isinstance(value, (list, tuple)):
                values = list(value)
            else:
                values = [value]
            normalized.setdefault(name.lower(), []).extend(values)
        self.attributes = normalized

    def get(self, name: str) -> list[Any]:
        return self.attributes.get(name.lower(), [])

    def first(self, name: str, default: Any = None) -> Any:
        values = self.get(name)
        return values[0] if values else default

    def as_dict(self) -> dict[str, Any]:
        return {"dn": self.dn, "attributes": {k: list(v) for k, v in self.attributes.items()}}


@dataclass
class DirectoryResult:
    """Entries returned by a read or search, in directory order.

    ``count == 0`` means "not found", which is a normal outcome.
    """

    entries: list[DirectoryEntry] = field(default_factory=list)
    role_suffix: str | None = None

    @property
    def count(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> DirectoryEntry:
        return self.entries[index]

    def __iter__(self):
        return iter(self.entries)

    def first_value(self, name: str, default: Any = None) -> Any:
        if not self.entries:
            return default
        return self.entries[0].first(name, default)

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "count": self.count,
            "entries": [e.as_dict() for e in self.entries],
        }
        if self.role_suffix:
            data["role_suffix"] = self.role_suffix
        return data
