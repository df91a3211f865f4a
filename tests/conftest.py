import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CONTEXT_STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi.testclient import TestClient

from deeplink_auth.core.application import create_application
from deeplink_auth.domain.services.auth_flow import AuthFlowOrchestrator
from deeplink_auth.domain.services.context_store import EphemeralContextStore
from deeplink_auth.domain.services.state_token import StateTokenService
from deeplink_auth.infrastructure.storage.memory import InMemoryStorageBackend
from tests.factories import FakeClock, FakeCredentialStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend(clock):
    return InMemoryStorageBackend(clock=clock)


@pytest.fixture
def session_backend(memory_backend):
    return memory_backend.scoped("session-a")


@pytest.fixture
def context_store(session_backend, clock):
    return EphemeralContextStore(session_backend, clock=clock)


@pytest.fixture
def state_service(context_store):
    return StateTokenService(context_store)


@pytest.fixture
def credential_store():
    return FakeCredentialStore()


@pytest.fixture
def orchestrator(context_store, state_service, credential_store):
    return AuthFlowOrchestrator(
        context_store,
        state_service,
        credential_store,
        site_url="https://fit.example.com",
    )


@pytest.fixture
def app(credential_store):
    return create_application(credential_store=credential_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client

