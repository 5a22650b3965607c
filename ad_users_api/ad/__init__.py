"""Active Directory (LDAP) access: session, guard, codec and operations.

Public API:
    - ADConfig, UserAccount, UserCreationRequest
    - DirectorySession, ConnectionGuard, RetryPolicy
    - ADClient
"""

from .models import ADConfig, UserAccount, UserCreationRequest
from .session import DirectorySession
from .guard import ConnectionGuard, RetryPolicy
from .client import ADClient

__all__ = [
    "ADConfig",
    "UserAccount",
    "UserCreationRequest",
    "DirectorySession",
    "ConnectionGuard",
    "RetryPolicy",
    "ADClient",
]
