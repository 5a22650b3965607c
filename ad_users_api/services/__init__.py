"""Application service layer.

Routers import from here:
    from ad_users_api.services import ...
"""

from .provisioning import create_account
from .users import delete_account, fetch_all, fetch_user, resolve_dn

__all__ = [
    "create_account",
    "delete_account",
    "fetch_all",
    "fetch_user",
    "resolve_dn",
]
