"""Auth flow orchestration.

The orchestrator ties the validator, the state token service, the context
store and the credential store together so that a user who follows a link
into the application, authenticates by any means and comes back lands where
they started.

Only validated values are ever persisted or emitted. Anything that fails
validation is dropped and the flow falls back to the default landing page.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Mapping, Optional, Sequence, TypeVar, Union
from urllib.parse import urlencode

import structlog

from deeplink_auth.core.exceptions import (
    AuthErrorKind,
    AuthFlowError,
    CredentialStoreError,
    InvalidOAuthStateError,
    PasswordPolicyError,
    ValidationError,
)
from deeplink_auth.domain.interfaces.credential_store import CredentialUser, ICredentialStore
from deeplink_auth.domain.security.error_messages import (
    classify_error,
    get_message_for_kind,
    to_auth_error,
)
from deeplink_auth.domain.services.context_store import (
    DEFAULT_TTL_MINUTES,
    EphemeralContextStore,
    StorageKey,
)
from deeplink_auth.domain.services.password_reset import PasswordResetFlow, ResetFlowState
from deeplink_auth.domain.services.state_token import DEFAULT_STATE_TTL_MINUTES, StateTokenService
from deeplink_auth.domain.validation.url_validator import (
    is_dangerous_value,
    is_valid_competition_id,
    is_valid_redirect_url,
    parse_auth_flow,
)
from deeplink_auth.domain.value_objects.auth_context import (
    AuthFlow,
    AuthUrlContext,
    OAuthProvider,
    OAuthUrl,
)
from deeplink_auth.domain.value_objects.email import Email
from deeplink_auth.domain.value_objects.password import Password
from deeplink_auth.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_LANDING_PATH = "/competitions"
DEFAULT_OAUTH_PROVIDERS = ("google", "github", "discord", "apple")
RESERVED_QUERY_KEYS = frozenset({"redirect", "competition"})

_CREDENTIAL_FAILURES = (CredentialStoreError, OSError, asyncio.TimeoutError)


def _encode(params: Mapping[str, str]) -> str:
    return urlencode(params, safe="/")


def build_auth_flow_url(
    flow: Union[AuthFlow, str],
    redirect_url: Optional[str] = None,
    competition_id: Optional[str] = None,
    extra_params: Optional[Mapping[str, str]] = None,
) -> str:
    """Build ``/auth/{flow}`` carrying only validated context.

    Args:
        flow: Target auth page.
        redirect_url: Included as ``redirect`` only if it is a safe relative path.
        competition_id: Included as ``competition`` only if it is a valid UUID.
        extra_params: Additional parameters. They never override ``redirect``
            or ``competition`` and dangerous values are dropped.

    Returns:
        str: The path with its query string, slashes left literal.

    Raises:
        ValueError: If ``flow`` is not a known auth flow.
    """
    parsed_flow = flow if isinstance(flow, AuthFlow) else parse_auth_flow(flow)
    if parsed_flow is None:
        raise ValueError(f"Unknown auth flow: {flow!r}")

    params: Dict[str, str] = {}
    if is_valid_redirect_url(redirect_url):
        params["redirect"] = redirect_url
    if is_valid_competition_id(competition_id):
        params["competition"] = competition_id

    for key, value in (extra_params or {}).items():
        if key in RESERVED_QUERY_KEYS or not isinstance(value, str) or not value:
            continue
        if is_dangerous_value(value):
            continue
        params[key] = value

    base = f"/auth/{parsed_flow.value}"
    return f"{base}?{_encode(params)}" if params else base


def extract_auth_context(query: Mapping[str, Any]) -> AuthUrlContext:
    """Derive an ``AuthUrlContext`` from query parameters.

    Pure: nothing is persisted. Invalid ``redirect``, ``competition`` and
    ``flow`` values are dropped.
    """

    def _text(key: str) -> Optional[str]:
        value = query.get(key)
        return value if isinstance(value, str) and value else None

    redirect = _text("redirect")
    competition = _text("competition")
    return AuthUrlContext(
        redirect_url=redirect if is_valid_redirect_url(redirect) else None,
        competition_id=competition if is_valid_competition_id(competition) else None,
        auth_flow=parse_auth_flow(_text("flow")),
        oauth_state=_text("state"),
        error=_text("error"),
        error_description=_text("error_description"),
    )


@dataclass(frozen=True)
class AuthOutcome:
    """Result of a successful sign-in or sign-up."""

    user: CredentialUser
    redirect_to: str


class AuthFlowOrchestrator:
    """Coordinates one navigation's worth of authentication work.

    Instances are cheap and meant to be created per request. Used as an async
    context manager, the orchestrator also runs the context store's sweeper
    for its lifetime.

    Args:
        context_store: Session-scoped ephemeral store.
        state_service: Issues and validates OAuth state for the same session.
        credential_store: External credential and session backend.
        site_url: Public origin used for links that leave the application,
            e.g. the recovery email link.
        default_landing_path: Where users go when no destination survives
            validation.
        language: Language for user-facing messages.
        context_ttl_minutes: Lifetime of stored redirect/competition context.
        state_ttl_minutes: Lifetime of an issued OAuth state.
        oauth_providers: Provider names ``build_oauth_url`` accepts.
    """

    def __init__(
        self,
        context_store: EphemeralContextStore,
        state_service: StateTokenService,
        credential_store: ICredentialStore,
        *,
        site_url: str,
        default_landing_path: str = DEFAULT_LANDING_PATH,
        language: str = "en",
        context_ttl_minutes: float = DEFAULT_TTL_MINUTES,
        state_ttl_minutes: float = DEFAULT_STATE_TTL_MINUTES,
        oauth_providers: Sequence[str] = DEFAULT_OAUTH_PROVIDERS,
    ):
        self._context_store = context_store
        self._state_service = state_service
        self._credentials = credential_store
        self.site_url = site_url.rstrip("/")
        self.default_landing_path = (
            default_landing_path if is_valid_redirect_url(default_landing_path) else DEFAULT_LANDING_PATH
        )
        self.language = language
        self.context_ttl_minutes = context_ttl_minutes
        self.state_ttl_minutes = state_ttl_minutes
        self.oauth_providers = tuple(oauth_providers)

    @property
    def context_store(self) -> EphemeralContextStore:
        return self._context_store

    @property
    def login_url(self) -> str:
        return build_auth_flow_url(AuthFlow.LOGIN)

    async def __aenter__(self) -> "AuthFlowOrchestrator":
        await self._context_store.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._context_store.__aexit__(exc_type, exc, tb)

    # ------------------------------------------------------------------
    # Context persistence
    # ------------------------------------------------------------------

    async def _persist_destination(
        self, redirect_url: Optional[str], competition_id: Optional[str]
    ) -> None:
        if is_valid_redirect_url(redirect_url):
            await self._context_store.set(
                StorageKey.AUTH_REDIRECT_URL, redirect_url, ttl_minutes=self.context_ttl_minutes
            )
        if is_valid_competition_id(competition_id):
            await self._context_store.set(
                StorageKey.AUTH_COMPETITION_ID, competition_id, ttl_minutes=self.context_ttl_minutes
            )

    async def begin_navigation(self, query: Mapping[str, Any]) -> AuthUrlContext:
        """Extract context from an auth page URL and persist the valid parts."""
        context = extract_auth_context(query)
        await self._persist_destination(context.redirect_url, context.competition_id)
        if context.auth_flow is not None:
            await self._context_store.set(
                StorageKey.AUTH_FLOW, context.auth_flow.value, ttl_minutes=self.context_ttl_minutes
            )
        logger.debug("auth_navigation_started", **context.mask_for_logging())
        return context

    async def preserve_context(self, current_path: str) -> bool:
        """Back up the page the user is on before sending them to authenticate.

        Returns:
            bool: False when the path is not a safe redirect target.
        """
        if not is_valid_redirect_url(current_path):
            return False
        backup = json.dumps({"path": current_path, "timestamp": int(time.time() * 1000)})
        await self._context_store.set(
            StorageKey.AUTH_CONTEXT_BACKUP, backup, ttl_minutes=self.context_ttl_minutes
        )
        return True

    async def restore_context(self) -> Optional[str]:
        """Consume the backed-up page, returning it only if still valid."""
        raw = await self._context_store.consume(StorageKey.AUTH_CONTEXT_BACKUP)
        if raw is None:
            return None
        try:
            path = json.loads(raw).get("path")
        except (ValueError, AttributeError):
            logger.warning("auth_context_backup_corrupt")
            return None
        return path if is_valid_redirect_url(path) else None

    async def resolve_post_auth_redirect(self, param_redirect: Optional[str] = None) -> str:
        """Decide where to send a freshly authenticated user.

        Priority: stored redirect, then ``param_redirect``, then the stored
        competition page, then the default landing page. Stored destination
        keys are consumed.
        """
        stored_redirect = await self._context_store.consume(StorageKey.AUTH_REDIRECT_URL)
        stored_competition = await self._context_store.consume(StorageKey.AUTH_COMPETITION_ID)
        await self._context_store.remove(StorageKey.AUTH_FLOW)

        if is_valid_redirect_url(stored_redirect):
            destination, origin = stored_redirect, "stored_redirect"
        elif is_valid_redirect_url(param_redirect):
            destination, origin = param_redirect, "param_redirect"
        elif is_valid_competition_id(stored_competition):
            destination, origin = f"/competition/{stored_competition}", "competition"
        else:
            destination, origin = self.default_landing_path, "default"

        logger.info("post_auth_destination_resolved", origin=origin)
        return destination

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    async def build_oauth_url(
        self,
        provider: str,
        redirect_url: Optional[str] = None,
        competition_id: Optional[str] = None,
    ) -> OAuthUrl:
        """Issue a state and build the provider entry URL.

        Valid redirect and competition values are persisted for the return
        trip and echoed in the URL.

        Raises:
            ValidationError: If ``provider`` is not supported.
        """
        try:
            oauth_provider = OAuthProvider(provider, self.oauth_providers)
        except ValueError as exc:
            raise ValidationError(
                get_translated_message("unsupported_oauth_provider", self.language),
                code="unsupported_oauth_provider",
            ) from exc

        state = await self._state_service.issue_state(ttl_minutes=self.state_ttl_minutes)
        await self._persist_destination(redirect_url, competition_id)

        params: Dict[str, str] = {"state": state}
        if is_valid_redirect_url(redirect_url):
            params["redirect"] = redirect_url
        if is_valid_competition_id(competition_id):
            params["competition"] = competition_id

        logger.info(
            "oauth_url_built",
            provider=oauth_provider.value,
            has_redirect="redirect" in params,
            has_competition="competition" in params,
        )
        return OAuthUrl(url=f"/auth/oauth/{oauth_provider.value}?{_encode(params)}", state=state)

    async def complete_oauth_callback(self, query: Mapping[str, Any]) -> str:
        """Validate an OAuth callback and return the post-auth destination.

        Raises:
            AuthFlowError: If the provider reported an error or no session
                could be confirmed.
            InvalidOAuthStateError: If the state is missing, expired, replayed
                or forged. All stored context is cleared first.
        """
        context = extract_auth_context(query)

        if context.has_error:
            await self._context_store.remove(StorageKey.OAUTH_STATE)
            if context.error == "access_denied":
                kind = AuthErrorKind.ACCESS_DENIED
            else:
                kind = classify_error(context.error)
            logger.warning("oauth_provider_error", kind=kind.value)
            raise AuthFlowError(
                kind,
                get_message_for_kind(kind, self.language),
                redirect_to=build_auth_flow_url(AuthFlow.LOGIN, extra_params={"error": kind.value}),
            )

        try:
            await self._state_service.validate_state(context.oauth_state)
        except InvalidOAuthStateError as exc:
            await self._context_store.clear()
            raise InvalidOAuthStateError(
                get_message_for_kind(AuthErrorKind.INVALID_STATE, self.language),
                cause=exc,
                redirect_to=self.login_url,
            ) from exc

        user = await self._call_credential_store("get_user", self._credentials.get_user())
        if user is None:
            logger.warning("oauth_callback_without_session")
            raise AuthFlowError(
                AuthErrorKind.UNKNOWN,
                get_translated_message("no_active_session", self.language),
                redirect_to=self.login_url,
            )

        logger.info("oauth_callback_completed", user_id=user.id)
        return await self.resolve_post_auth_redirect(context.redirect_url)

    # ------------------------------------------------------------------
    # Credential flows
    # ------------------------------------------------------------------

    async def _call_credential_store(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except _CREDENTIAL_FAILURES as exc:
            logger.warning("credential_store_call_failed", operation=operation)
            raise to_auth_error(exc, self.language) from exc

    def _validated_email(self, email: str) -> Email:
        try:
            return Email(email)
        except ValueError as exc:
            raise AuthFlowError(
                AuthErrorKind.INVALID_EMAIL,
                get_message_for_kind(AuthErrorKind.INVALID_EMAIL, self.language),
                cause=exc,
            ) from exc

    async def sign_in(
        self, email: str, password: str, param_redirect: Optional[str] = None
    ) -> AuthOutcome:
        """Sign in with email and password and resolve the destination."""
        address = self._validated_email(email)
        user = await self._call_credential_store(
            "sign_in_with_password",
            self._credentials.sign_in_with_password(address.value, password),
        )
        logger.info("user_signed_in", user_id=user.id, email=address.mask_for_logging())
        return AuthOutcome(user=user, redirect_to=await self.resolve_post_auth_redirect(param_redirect))

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
        param_redirect: Optional[str] = None,
    ) -> AuthOutcome:
        """Register an account and resolve the destination.

        The password must satisfy the same policy as a reset password.
        """
        address = self._validated_email(email)
        try:
            Password(password)
        except PasswordPolicyError as exc:
            raise AuthFlowError(
                AuthErrorKind.WEAK_PASSWORD,
                get_message_for_kind(AuthErrorKind.WEAK_PASSWORD, self.language),
                cause=exc,
            ) from exc

        user = await self._call_credential_store(
            "sign_up", self._credentials.sign_up(address.value, password, metadata or {})
        )
        logger.info("user_signed_up", user_id=user.id, email=address.mask_for_logging())
        return AuthOutcome(user=user, redirect_to=await self.resolve_post_auth_redirect(param_redirect))

    async def sign_out(self) -> str:
        """Close the session and clear every stored context key.

        Context is cleared even when the credential store call fails.
        """
        try:
            await self._call_credential_store("sign_out", self._credentials.sign_out())
        finally:
            await self._context_store.clear()
        logger.info("user_signed_out")
        return self.login_url

    def password_reset_flow(
        self,
        redirect_url: Optional[str] = None,
        competition_id: Optional[str] = None,
        state: ResetFlowState = ResetFlowState.REQUEST,
    ) -> PasswordResetFlow:
        """Create a reset flow whose email link carries the valid context."""
        reset_path = build_auth_flow_url(AuthFlow.RESET, redirect_url, competition_id)
        return PasswordResetFlow(
            self._credentials,
            self._context_store,
            redirect_to=f"{self.site_url}{reset_path}",
            login_url=build_auth_flow_url(AuthFlow.LOGIN, redirect_url, competition_id),
            language=self.language,
            state=state,
            context_ttl_minutes=self.context_ttl_minutes,
        )
