from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field

from .directory import LdapConfig
from .directory.models import UserCallback


class EnvSettings(BaseSettings):
    secret_key: str = Field(..., alias="APP_SECRET_KEY")
    cookie_secure: bool = Field(False, alias="APP_COOKIE_SECURE")
    sqlite_path: str = Field("data/app.db", alias="SQLITE_PATH")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("", alias="LOG_DIR")
    log_retention_days: int = Field(30, alias="LOG_RETENTION_DAYS")

    # LDAP
    ldap_host: str = Field("", alias="LDAP_HOST")
    ldap_port: int = Field(389, alias="LDAP_PORT")
    ldap_protocol_version: int = Field(3, alias="LDAP_PROTOCOL_VERSION")
    ldap_base_dn: str = Field("", alias="LDAP_BASE_DN")
    ldap_start_tls: bool = Field(False, alias="LDAP_START_TLS")
    ldap_use_ssl: bool = Field(False, alias="LDAP_USE_SSL")
    ldap_tls_validate: bool = Field(False, alias="LDAP_TLS_VALIDATE")
    ldap_ca_certs_file: str = Field("", alias="LDAP_CA_CERTS_FILE")
    ldap_connect_timeout: Optional[float] = Field(None, alias="LDAP_CONNECT_TIMEOUT")
    ldap_hide_errors: bool = Field(False, alias="LDAP_HIDE_ERRORS")
    ldap_common_bind_dn: str = Field("", alias="LDAP_COMMON_BIND_DN")
    ldap_common_bind_password: str = Field("", alias="LDAP_COMMON_BIND_PASSWORD")
    ldap_search_filter: str = Field("", alias="LDAP_SEARCH_FILTER")
    ldap_bind_dn: str = Field("", alias="LDAP_BIND_DN")
    ldap_query_datasource: bool = Field(True, alias="LDAP_QUERY_DATASOURCE")
    ldap_user_model: str = Field("Users", alias="LDAP_USER_MODEL")
    ldap_username_field: str = Field("email", alias="LDAP_USERNAME_FIELD")

    class Config:
        populate_by_name = True

    def ldap_config(self, callback: UserCallback | None = None) -> LdapConfig:
        return LdapConfig(
            host=self.ldap_host,
            port=self.ldap_port,
            protocol_version=self.ldap_protocol_version,
            base_dn=self.ldap_base_dn,
            start_tls=self.ldap_start_tls,
            use_ssl=self.ldap_use_ssl,
            tls_validate=self.ldap_tls_validate,
            ca_certs_file=self.ldap_ca_certs_file,
            connect_timeout=self.ldap_connect_timeout,
            hide_errors=self.ldap_hide_errors,
            common_bind_dn=self.ldap_common_bind_dn,
            common_bind_password=self.ldap_common_bind_password,
            query_datasource=self.ldap_query_datasource,
            user_model=self.ldap_user_model,
            field_map={"username": self.ldap_username_field},
            auth={
                "search_filter": self.ldap_search_filter,
                "bind_dn": self.ldap_bind_dn,
                "callback": callback,
            },
        )


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
