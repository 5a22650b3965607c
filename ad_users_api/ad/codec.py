"""Conversion between directory attributes and application records.

Directory attributes are multi-valued strings; the read side maps them onto
UserAccount, the write side produces the attribute sets and the unicodePwd
payload Active Directory expects.
"""
from __future__ import annotations

import base64
from typing import Any, Mapping, Sequence

from ldap3.utils.dn import escape_rdn

from .models import UserAccount, UserCreationRequest

USER_ATTRIBUTES: tuple[str, ...] = tuple(UserAccount.model_fields)

USER_OBJECT_CLASSES = ["top", "person", "organizationalPerson", "user"]

# NORMAL_ACCOUNT | DONT_EXPIRE_PASSWORD
ENABLED_ACCOUNT_CONTROL = 66048


def decode_attributes(raw: Mapping[str, Sequence[str]]) -> UserAccount:
    values = {name: list(raw[name]) for name in USER_ATTRIBUTES if name in raw}
    return UserAccount(**values)


def decode_entry(entry: Mapping[str, Any]) -> UserAccount:
    """Build a UserAccount from one ldap3 search response entry.

    An attribute holding a value that is not valid UTF-8 is binary
    (objectSid, thumbnailPhoto, ...) and is left out.
    """
    raw: dict[str, list[str]] = {}
    for name, values in (entry.get("raw_attributes") or {}).items():
        try:
            raw[name] = [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in values]
        except UnicodeDecodeError:
            continue
    return decode_attributes(raw)


def _quoted_utf16(plaintext: str) -> bytes:
    return f'"{plaintext}"'.encode("utf-16-le")


def encode_password_for_modify(plaintext: str) -> bytes:
    """unicodePwd value for a modify/replace: the quoted password as UTF-16LE."""
    return _quoted_utf16(plaintext)


def encode_password_for_add(plaintext: str) -> bytes:
    """Base64 text of the quoted UTF-16LE password.

    This is the create-time form; the directory itself only accepts the raw
    bytes from encode_password_for_modify.
    """
    return base64.b64encode(_quoted_utf16(plaintext))


def derive_dn(cn: str, base_dn: str) -> str:
    return f"CN={escape_rdn(cn)},{base_dn}"


def build_add_attributes(request: UserCreationRequest) -> dict[str, list[str]]:
    return {
        "objectClass": list(USER_OBJECT_CLASSES),
        "cn": [request.cn],
        "givenName": [request.givenName],
        "sn": [request.sn],
        "displayName": [request.displayName],
        "userPrincipalName": [request.userPrincipalName],
        "sAMAccountName": [request.sAMAccountName],
        "mail": [request.mail],
    }


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
