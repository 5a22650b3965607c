from __future__ import annotations

import logging

from ..ad import ADClient, DirectorySession, UserAccount
from ..ad.errors import DeleteFailed, NotFound

log = logging.getLogger(__name__)


def fetch_all(session: DirectorySession, base_dn: str) -> list[UserAccount]:
    return ADClient(session, base_dn).search_users()


def resolve_dn(session: DirectorySession, base_dn: str, account_name: str) -> str | None:
    return ADClient(session, base_dn).find_dn(account_name)


def fetch_user(session: DirectorySession, base_dn: str, dn: str) -> UserAccount | None:
    return ADClient(session, base_dn).get_user(dn)


def delete_account(session: DirectorySession, base_dn: str, account_name: str) -> str:
    """Delete the user whose sAMAccountName is `account_name`; returns its DN.

    Raises NotFound (no delete is sent) or DeleteFailed.
    """
    client = ADClient(session, base_dn)
    with session.connection():
        dn = client.find_dn(account_name)
        if dn is None:
            raise NotFound(f"No user with sAMAccountName {account_name}")

        log.info("Deleting user %s", dn)
        ok, desc = client.delete(dn)
    if not ok:
        log.error("Delete of %s failed: %s", dn, desc)
        raise DeleteFailed(f"{dn}: {desc}")
    return dn
