"""Domain interfaces.

Abstractions the domain depends on; concrete implementations live in the
infrastructure layer or are supplied by the host application.
"""

from .credential_store import CredentialUser, ICredentialStore
from .storage import IStorageBackend

__all__ = ["CredentialUser", "ICredentialStore", "IStorageBackend"]
