from __future__ import annotations


class DirectoryError(Exception):
    """Base class for everything the directory layer raises."""


class AuthError(DirectoryError):
    """The directory rejected the bind (bad principal or credential)."""


class TransportError(DirectoryError):
    """The server could not be reached or the TLS negotiation failed."""


class DirectoryUnavailable(DirectoryError):
    """The connection guard gave up re-binding the session."""

    def __init__(self, attempts: int, last_error: Exception | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Directory unavailable after {attempts} attempts: {last_error}")


class SearchFailed(DirectoryError):
    pass


class ProvisionError(DirectoryError):
    """Account creation did not complete.

    `dn` is the entry the provisioner was working on; for everything except
    AddFailed the entry already exists in the directory.
    """

    def __init__(self, dn: str, message: str) -> None:
        self.dn = dn
        super().__init__(f"{dn}: {message}")


class AddFailed(ProvisionError):
    pass


class PasswordSetFailed(ProvisionError):
    pass


class EnableFailed(ProvisionError):
    pass


class VerificationFailed(ProvisionError):
    pass


class NotFound(DirectoryError):
    pass


class DeleteFailed(DirectoryError):
    pass
