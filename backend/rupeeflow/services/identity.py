"""Identity: registration, email verification, login (password and Google), reset, logout."""
import itertools
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from rupeeflow.config import Settings
from rupeeflow.errors import (
    EmailAlreadyRegisteredError,
    EmailNotVerifiedError,
    FederatedLoginError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
)
from rupeeflow.models.auth import User
from rupeeflow.security import ACCESS, RESET, VERIFY, TokenService, hash_password, verify_password
from rupeeflow.services.email import EmailSender
from rupeeflow.storage.database import UserStore

logger = logging.getLogger(__name__)

SIGNED_IN = "signed_in"
SIGNED_OUT = "signed_out"

AuthCallback = Callable[[str, str], None]


class AuthEventStream:
    """Authentication state changes (``signed_in`` / ``signed_out``) for the app's lifetime."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._callbacks: Dict[int, AuthCallback] = {}

    def subscribe(self, callback: AuthCallback) -> Callable[[], None]:
        """Register ``callback(event, user_id)``; returns an unsubscribe function."""
        with self._lock:
            token = next(self._counter)
            self._callbacks[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._callbacks.pop(token, None)

        return unsubscribe

    def emit(self, event: str, user_id: str) -> None:
        with self._lock:
            callbacks = list(self._callbacks.values())
        logger.info("Auth state changed", extra={"event": event, "user_id": user_id})
        for callback in callbacks:
            try:
                callback(event, user_id)
            except Exception:
                logger.exception("Auth listener failed", extra={"event": event, "user_id": user_id})


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_password(password: str) -> None:
    if any(c.isspace() for c in password):
        raise ValidationError("Password must not contain spaces")


class IdentityService:
    """Account lifecycle on top of ``UserStore``."""

    def __init__(
        self,
        users: UserStore,
        settings: Settings,
        events: Optional[AuthEventStream] = None,
        email_sender: Optional[EmailSender] = None,
    ):
        self.users = users
        self.settings = settings
        self.events = events or AuthEventStream()
        self.email_sender = email_sender or EmailSender()
        self.tokens = TokenService(settings.jwt_secret, settings.jwt_algorithm)

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    def _link(self, path: str, token: str) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/{path}?token={token}"

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create an unverified account and send the verification link.

        The account cannot sign in until the link is used.
        """
        _check_password(password)
        email_norm = _normalize_email(email)
        if self.users.get_by_email(email_norm) is not None:
            raise EmailAlreadyRegisteredError()
        user = self.users.create(name.strip(), email_norm, hash_password(password))
        self.send_verification(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    def send_verification(self, user: User) -> None:
        token = self.tokens.create(user.id, VERIFY, self.settings.verification_token_expire_minutes)
        self.email_sender.send_verification(user.email, user.name, self._link("verify-email", token))

    def verify_email(self, token: str) -> User:
        payload = self.tokens.decode(token, VERIFY)
        try:
            user = self.users.get(payload["sub"])
        except NotFoundError:
            raise InvalidTokenError("Invalid token")
        self.users.mark_verified(user.id)
        return user.model_copy(update={"email_verified": True})

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------

    def _issue_session(self, user: User) -> str:
        token = self.tokens.create(
            user.id,
            ACCESS,
            self.settings.access_token_expire_minutes,
            email=user.email,
        )
        self.events.emit(SIGNED_IN, user.id)
        return token

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Password sign-in.

        Raises:
            InvalidCredentialsError: unknown email or wrong password
            EmailNotVerifiedError: the account has not been verified yet
        """
        user = self.users.get_by_email(_normalize_email(email))
        if user is None or not verify_password(password, self.users.get_password_hash(user.id)):
            raise InvalidCredentialsError()
        if not user.email_verified:
            raise EmailNotVerifiedError()
        return user, self._issue_session(user)

    async def _fetch_google_claims(self, id_token: str) -> Dict[str, Any]:
        """Validate a Google ID token with Google's tokeninfo endpoint."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.get(self.settings.google_tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.error("Google tokeninfo request failed", extra={"error": str(e)})
            raise FederatedLoginError("Google sign-in is unavailable. Please try again.")
        if resp.status_code != 200:
            raise FederatedLoginError("Invalid Google credential")
        return resp.json()

    async def login_with_google(self, id_token: str) -> Tuple[User, str]:
        """Federated sign-in; creates a verified account on first use."""
        claims = await self._fetch_google_claims(id_token)
        if self.settings.google_client_id and claims.get("aud") != self.settings.google_client_id:
            raise FederatedLoginError("Google credential was issued for another application")
        email = claims.get("email")
        if not email or str(claims.get("email_verified", "")).lower() != "true":
            raise FederatedLoginError("Google account email is not verified")

        email_norm = _normalize_email(email)
        user = self.users.get_by_email(email_norm)
        if user is None:
            name = claims.get("name") or email_norm.split("@")[0]
            user = self.users.create(name, email_norm, None, provider="google", email_verified=True)
            logger.info("User registered", extra={"user_id": user.id, "provider": "google"})
        elif not user.email_verified:
            # Google has vouched for the address
            self.users.mark_verified(user.id)
            user = user.model_copy(update={"email_verified": True})
        return user, self._issue_session(user)

    def authenticate(self, token: str) -> User:
        """Resolve an access token to a verified user."""
        payload = self.tokens.decode(token, ACCESS)
        try:
            user = self.users.get(payload["sub"])
        except NotFoundError:
            raise InvalidTokenError("User not found")
        if not user.email_verified:
            raise EmailNotVerifiedError()
        return user

    def logout(self, user_id: str) -> None:
        self.events.emit(SIGNED_OUT, user_id)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> None:
        """Send a reset link if the account exists; silent otherwise."""
        user = self.users.get_by_email(_normalize_email(email))
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        token = self.tokens.create(user.id, RESET, self.settings.reset_token_expire_minutes)
        self.email_sender.send_password_reset(user.email, self._link("reset-password", token))

    def reset_password(self, token: str, new_password: str) -> None:
        _check_password(new_password)
        payload = self.tokens.decode(token, RESET)
        try:
            user = self.users.get(payload["sub"])
        except NotFoundError:
            raise InvalidTokenError("Invalid token")
        self.users.set_password(user.id, hash_password(new_password))
        logger.info("Password reset", extra={"user_id": user.id})
