from __future__ import annotations

import re

from ldap3.utils.dn import escape_rdn

from ..exceptions import MalformedInputError

USERNAME_PLACEHOLDER = "{username}"

# john.doe+sales -> ("john.doe", "sales")
_ROLE_SUFFIX_RE = re.compile(r"[a-zA-Z0-9]+\.[a-zA-Z0-9]+\+[a-zA-Z0-9]+")


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def escape_dn_value(value: str) -> str:
    """RFC 4514 escaping for an attribute value placed inside a DN."""
    return escape_rdn(value) if value else ""


def format_template(template: str, username: str) -> str:
    """Replace every ``{username}`` tag in *template*; nothing else changes."""
    return template.replace(USERNAME_PLACEHOLDER, username)


def split_role_suffix(username: str) -> tuple[str, str | None]:
    """Split ``word.word+word`` into the base username and its role suffix.

    Usernames of any other shape are returned unchanged with no suffix.
    """
    if not _ROLE_SUFFIX_RE.fullmatch(username or ""):
        return username, None
    base, suffix = username.split("+", 1)
    return base, suffix


def add_suffix_to_mailbox(email: str, suffix: str) -> str:
    """john.doe@example.com + sales -> john.doe+sales@example.com"""
    parts = (email or "").split("@")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedInputError(f"Malformed email address: {email!r}")
    local, domain = parts
    return f"{local}+{suffix}@{domain}"
