from __future__ import annotations

import logging
from typing import Any

from ldap3 import (
    SUBTREE,
    BASE,
    ALL_ATTRIBUTES,
    ALL_OPERATIONAL_ATTRIBUTES,
    MODIFY_REPLACE,
)
from ldap3.core.exceptions import LDAPException

from .codec import decode_entry, escape_ldap_filter_value
from .errors import SearchFailed
from .models import UserAccount
from .session import DirectorySession

log = logging.getLogger(__name__)

USER_FILTER = "(objectClass=user)"

_RESULT_SUCCESS = 0
_RESULT_SIZE_LIMIT_EXCEEDED = 4
_RESULT_NO_SUCH_OBJECT = 32


def _describe(res: dict) -> str:
    return str(res.get("description") or res.get("message") or "unknown error")


class ADClient:
    """Directory operations on the shared session.

    Each call holds the session lock while it talks to the server. The lock
    is re-entrant, so a caller that needs several calls to run back to back
    wraps them in its own `with session.connection():` block.
    """

    def __init__(self, session: DirectorySession, base_dn: str) -> None:
        self.session = session
        self.base_dn = base_dn

    def _search(self, base: str, flt: str, scope: str, attributes: list[str]) -> tuple[int, str, list[dict]]:
        with self.session.connection() as conn:
            try:
                conn.search(
                    search_base=base,
                    search_filter=flt,
                    search_scope=scope,
                    attributes=attributes,
                )
            except LDAPException as e:
                raise SearchFailed(f"Search under {base} failed: {e}") from e
            res = dict(conn.result or {})
            entries = [e for e in (conn.response or []) if e.get("type") == "searchResEntry"]
        return int(res.get("result", -1)), _describe(res), entries

    def search_users(self) -> list[UserAccount]:
        code, desc, entries = self._search(self.base_dn, USER_FILTER, SUBTREE, [ALL_ATTRIBUTES])
        if code == _RESULT_SIZE_LIMIT_EXCEEDED:
            log.warning("User search under %s truncated by the server at %d entries", self.base_dn, len(entries))
        elif code != _RESULT_SUCCESS:
            raise SearchFailed(f"User search under {self.base_dn} failed: {desc}")
        return [decode_entry(e) for e in entries]

    def get_user(self, dn: str) -> UserAccount | None:
        code, desc, entries = self._search(dn, USER_FILTER, BASE, [ALL_ATTRIBUTES, ALL_OPERATIONAL_ATTRIBUTES])
        if code == _RESULT_NO_SUCH_OBJECT:
            return None
        if code != _RESULT_SUCCESS:
            raise SearchFailed(f"Reading {dn} failed: {desc}")
        if not entries:
            return None
        return decode_entry(entries[0])

    def find_dn(self, account_name: str) -> str | None:
        name = account_name or ""
        if not name:
            return None
        flt = f"(&{USER_FILTER}(sAMAccountName={escape_ldap_filter_value(name)}))"
        code, desc, entries = self._search(self.base_dn, flt, SUBTREE, ["distinguishedName"])
        if code != _RESULT_SUCCESS:
            raise SearchFailed(f"Lookup of {name} failed: {desc}")
        if not entries:
            return None
        if len(entries) > 1:
            log.warning("sAMAccountName %s matches %d entries, using the first", name, len(entries))
        return str(entries[0].get("dn") or "") or None

    def add(self, dn: str, attributes: dict[str, Any]) -> tuple[bool, str]:
        with self.session.connection() as conn:
            try:
                ok = bool(conn.add(dn, attributes=attributes))
            except LDAPException as e:
                return False, f"LDAP error: {e}"
            return ok, _describe(dict(conn.result or {}))

    def replace(self, dn: str, attribute: str, values: list[Any]) -> tuple[bool, str]:
        with self.session.connection() as conn:
            try:
                ok = bool(conn.modify(dn, {attribute: [(MODIFY_REPLACE, values)]}))
            except LDAPException as e:
                return False, f"LDAP error: {e}"
            return ok, _describe(dict(conn.result or {}))

    def delete(self, dn: str) -> tuple[bool, str]:
        with self.session.connection() as conn:
            try:
                ok = bool(conn.delete(dn))
            except LDAPException as e:
                return False, f"LDAP error: {e}"
            return ok, _describe(dict(conn.result or {}))
