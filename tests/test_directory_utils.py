from __future__ import annotations

import pytest

from ldap_utility.directory.utils import (
    add_suffix_to_mailbox,
    escape_ldap_filter_value,
    format_template,
    split_role_suffix,
)
from ldap_utility.exceptions import MalformedInputError


@pytest.mark.parametrize(
    ("username", "expected"),
    [
        ("john.doe+sales", ("john.doe", "sales")),
        ("J0hn.D0e+Team7", ("J0hn.D0e", "Team7")),
    ],
)
def test_split_role_suffix(username, expected):
    assert split_role_suffix(username) == expected


@pytest.mark.parametrize(
    "username",
    [
        "john.doe",
        "john+sales",
        "john.doe+",
        "john.doe+sales+extra",
        "john.doe.x+sales",
        "jo-hn.doe+sales",
        "john.doe+sa les",
        "",
    ],
)
def test_split_role_suffix_other_shapes(username):
    assert split_role_suffix(username) == (username, None)


def test_format_template_replaces_every_placeholder():
    template = "(|(uid={username})(mail={username}@example.com))"

    assert format_template(template, "jdoe") == "(|(uid=jdoe)(mail=jdoe@example.com))"


def test_format_template_leaves_other_text_alone():
    template = "cn={username},ou=people,dc=example,dc=com"

    assert format_template(template, "john.doe") == "cn=john.doe,ou=people,dc=example,dc=com"
    assert format_template("ou={user}", "john.doe") == "ou={user}"


def test_escape_ldap_filter_value():
    assert escape_ldap_filter_value("john.doe") == "john.doe"
    assert escape_ldap_filter_value("a\\b*(c)\x00") == "a\\5cb\\2a\\28c\\29\\00"


def test_add_suffix_to_mailbox():
    assert add_suffix_to_mailbox("john.doe@example.com", "sales") == "john.doe+sales@example.com"


@pytest.mark.parametrize(
    "email",
    ["john.doe", "", "john@doe@example.com", "@example.com", "john.doe@"],
)
def test_add_suffix_to_malformed_mailbox(email):
    with pytest.raises(MalformedInputError):
        add_suffix_to_mailbox(email, "sales")
