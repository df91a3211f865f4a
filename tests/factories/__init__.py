from __future__ import annotations

"""Re-export factories and fakes for generating test data."""

# flake8: noqa: F401 – re-export

from .clock import FakeClock
from .credential_store import FakeCredentialStore
from .user import create_fake_user

__all__ = [
    "FakeClock",
    "FakeCredentialStore",
    "create_fake_user",
]
