"""Account creation in Active Directory.

A new user only becomes usable after four directory writes in order:
add the entry, set unicodePwd, enable it through userAccountControl, then
read it back. The whole sequence runs under one hold of the session lock.
"""
from __future__ import annotations

import logging

from ..ad import ADClient, DirectorySession, UserAccount, UserCreationRequest
from ..ad.codec import (
    ENABLED_ACCOUNT_CONTROL,
    build_add_attributes,
    derive_dn,
    encode_password_for_modify,
)
from ..ad.errors import (
    AddFailed,
    EnableFailed,
    PasswordSetFailed,
    ProvisionError,
    SearchFailed,
    VerificationFailed,
)
from .users import fetch_user

log = logging.getLogger(__name__)


def _post_add_step(strict: bool, exc: ProvisionError) -> None:
    if strict:
        log.error("%s", exc)
        raise exc
    log.warning("Continuing after failed step: %s", exc)


def create_account(
    session: DirectorySession,
    request: UserCreationRequest,
    base_dn: str,
    *,
    strict: bool = True,
) -> UserAccount:
    """Create, enable and re-read a user account.

    With strict=False a rejected password or userAccountControl write is only
    logged, matching the old best-effort behaviour. The added entry is never
    rolled back: if a later step fails the entry stays in the directory.
    """
    client = ADClient(session, base_dn)
    dn = derive_dn(request.cn, base_dn)

    with session.connection():
        ok, desc = client.add(dn, build_add_attributes(request))
        if not ok:
            log.error("Add of %s failed: %s", dn, desc)
            raise AddFailed(dn, f"add entry failed: {desc}")
        log.info("Added entry %s", dn)

        ok, desc = client.replace(dn, "unicodePwd", [encode_password_for_modify(request.password)])
        if not ok:
            _post_add_step(strict, PasswordSetFailed(dn, f"password not set: {desc}"))

        ok, desc = client.replace(dn, "userAccountControl", [str(ENABLED_ACCOUNT_CONTROL)])
        if not ok:
            _post_add_step(strict, EnableFailed(dn, f"account not enabled: {desc}"))

        try:
            user = fetch_user(session, base_dn, dn)
        except SearchFailed as e:
            raise VerificationFailed(dn, str(e)) from e

    if user is None:
        log.error("Entry %s not found after creation", dn)
        raise VerificationFailed(dn, "entry not found after creation")
    log.info("Provisioned account %s (%s)", request.sAMAccountName, dn)
    return user
