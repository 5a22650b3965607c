from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class ADConfig:
    server: str
    bind_principal: str
    bind_password: str
    base_dn: str
    starttls: bool = True
    tls_validate: bool = False
    connect_timeout: float | None = 10.0

    @property
    def use_ssl(self) -> bool:
        return self.server.strip().lower().startswith("ldaps://")


class UserAccount(BaseModel):
    """A user entry as read back from the directory.

    Every directory attribute is multi-valued, so each field holds the full
    value list. A field is None when the entry does not carry the attribute.
    """

    model_config = ConfigDict(frozen=True)

    sAMAccountName: Optional[List[str]] = None
    sn: Optional[List[str]] = None
    badPasswordTime: Optional[List[str]] = None
    uSNChanged: Optional[List[str]] = None
    objectClass: Optional[List[str]] = None
    logonCount: Optional[List[str]] = None
    homeDirectory: Optional[List[str]] = None
    accountExpires: Optional[List[str]] = None
    lastLogonTimestamp: Optional[List[str]] = None
    lastLogoff: Optional[List[str]] = None
    distinguishedName: Optional[List[str]] = None
    countryCode: Optional[List[str]] = None
    objectCategory: Optional[List[str]] = None
    cn: Optional[List[str]] = None
    codePage: Optional[List[str]] = None
    memberOf: Optional[List[str]] = None
    instanceType: Optional[List[str]] = None
    name: Optional[List[str]] = None
    givenName: Optional[List[str]] = None
    sAMAccountType: Optional[List[str]] = None
    userPrincipalName: Optional[List[str]] = None
    whenChanged: Optional[List[str]] = None
    pwdLastSet: Optional[List[str]] = None
    badPwdCount: Optional[List[str]] = None
    lastLogon: Optional[List[str]] = None
    whenCreated: Optional[List[str]] = None
    displayName: Optional[List[str]] = None
    homeDrive: Optional[List[str]] = None
    userAccountControl: Optional[List[str]] = None
    primaryGroupID: Optional[List[str]] = None
    uSNCreated: Optional[List[str]] = None
    dSCorePropagationData: Optional[List[str]] = None

    @property
    def dn(self) -> str | None:
        if self.distinguishedName:
            return self.distinguishedName[0]
        return None


class UserCreationRequest(BaseModel):
    """Body of POST /users."""

    cn: str = Field(..., min_length=1)
    givenName: str = Field(..., min_length=1)
    sn: str = Field(..., min_length=1)
    displayName: str = Field(..., min_length=1)
    userPrincipalName: str = Field(..., min_length=1)
    sAMAccountName: str = Field(..., min_length=1)
    mail: str = Field(..., min_length=1)
    # plaintext; only ever leaves the process UTF-16LE encoded inside unicodePwd
    password: str = Field(..., min_length=1, repr=False)
