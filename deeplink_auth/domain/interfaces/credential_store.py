"""Credential store interface.

The credential store owns users, passwords and sessions. This package never
implements it; it only drives it from the auth flows. Any hosted identity
service can be adapted behind this interface.

Error contract for implementations:
    - ``CredentialStoreError(message, code)`` for backend rejections. ``code``
      should be the backend's machine-readable code when it has one, since it
      is what the error taxonomy matches first.
    - ``TimeoutError`` when the backend did not answer in time.
    - ``ConnectionError`` when it could not be reached at all.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CredentialUser:
    """The subset of a user record the auth flows need."""

    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ICredentialStore(ABC):
    """Interface for the external credential and session store."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> CredentialUser:
        """Authenticate with email and password and open a session."""
        raise NotImplementedError

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> CredentialUser:
        """Register a new account.

        Args:
            email: Address of the new account.
            password: Chosen password. Never logged.
            metadata: Profile data stored alongside the account.
        """
        raise NotImplementedError

    @abstractmethod
    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        """Send a recovery email whose link lands on ``redirect_to``."""
        raise NotImplementedError

    @abstractmethod
    async def verify_recovery_token(self, token: str) -> None:
        """Exchange a recovery token for a recovery session.

        Raises:
            CredentialStoreError: With an ``otp_expired``-like code for expired
                tokens and an ``invalid_token``-like code for unknown ones.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_user(self, password: str) -> CredentialUser:
        """Set a new password for the user of the current (recovery) session."""
        raise NotImplementedError

    @abstractmethod
    async def get_user(self) -> Optional[CredentialUser]:
        """Return the user of the current session, or None if there is none."""
        raise NotImplementedError

    @abstractmethod
    async def sign_out(self) -> None:
        """Close the current session."""
        raise NotImplementedError
