"""Domain services for the deep-link authentication context."""

from .auth_flow import (
    AuthFlowOrchestrator,
    AuthOutcome,
    build_auth_flow_url,
    extract_auth_context,
)
from .context_store import EphemeralContextStore, StorageKey
from .password_reset import PasswordResetFlow, ResetFlowState
from .state_token import StateTokenService, generate_state, states_match

__all__ = [
    "AuthFlowOrchestrator",
    "AuthOutcome",
    "build_auth_flow_url",
    "extract_auth_context",
    "EphemeralContextStore",
    "StorageKey",
    "PasswordResetFlow",
    "ResetFlowState",
    "StateTokenService",
    "generate_state",
    "states_match",
]
