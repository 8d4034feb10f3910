"""Session-based auth gateway.

The resource controllers only ever call :meth:`AuthGateway.validate_session`;
credential checks, token format and cookie handling stay behind the
:class:`AuthGateway` protocol.  :class:`DatabaseAuthGateway` is the concrete
implementation:

- passwords live in ``accounts`` as bcrypt hashes;
- a login creates an ``auth_sessions`` row holding the SHA-256 digest of a
  random token;
- the client receives that token wrapped in an HS256 JWT (signed with
  ``auth_secret``) as a cookie and in the response body, and may send it back
  either as that cookie or as an ``Authorization: Bearer`` header.

Every mutating call returns an :class:`AuthResult` carrying the status, JSON
body and raw ``Set-Cookie`` headers, so callers can forward them verbatim.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

from jose import JWTError, jwt
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool
from starlette.requests import cookie_parser
from starlette.responses import Response

from src.config import Settings
from src.database import Database
from src.exceptions import AuthGatewayError
from src.models.base import utcnow
from src.models.user import Account, AuthSession, User, UserRole
from src.schemas.auth import IdentitySchema
from src.services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

CREDENTIAL_PROVIDER = "credential"


@dataclass(frozen=True)
class Identity:
    """The authenticated user behind a session."""

    id: str
    name: str
    email: str
    email_verified: bool
    role: str
    image: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> Identity:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            email_verified=user.email_verified,
            role=user.role,
            image=user.image,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def to_json(self) -> dict[str, Any]:
        return IdentitySchema.model_validate(self).model_dump(mode="json", by_alias=True)


@dataclass
class AuthResult:
    """Outcome of a gateway call, ready to be turned into an HTTP response."""

    status_code: int
    body: Any
    set_cookies: list[str] = field(default_factory=list)


class AuthGateway(Protocol):
    """Capability interface the rest of the application depends on."""

    async def validate_session(self, headers: Mapping[str, str]) -> Identity | None: ...

    async def get_session(self, headers: Mapping[str, str]) -> AuthResult: ...

    async def sign_up_email(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str = UserRole.STUDENT.value,
        image: str | None = None,
        image_cld_pub_id: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AuthResult: ...

    async def sign_in_email(
        self,
        *,
        email: str,
        password: str,
        headers: Mapping[str, str] | None = None,
    ) -> AuthResult: ...

    async def sign_out(self, headers: Mapping[str, str]) -> AuthResult: ...


# ---------------------------------------------------------------------------
# Token signing
# ---------------------------------------------------------------------------


class SessionTokenCodec:
    """Wraps raw session tokens in signed JWTs and unwraps them again.

    The JWT carries the user id as ``sub`` and the raw token as ``sid``; the
    database row stays the source of truth for revocation.

    Args:
        secret: Server-side signing key.
        algorithm: JWS algorithm passed to python-jose.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("Session signing secret cannot be empty")
        self._secret = secret
        self._algorithm = algorithm

    def encode(self, token: str, *, user_id: str, expires_at: datetime) -> str:
        payload = {
            "sub": user_id,
            "sid": token,
            "iat": int(utcnow().timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, value: str) -> str | None:
        """Return the raw token inside *value*, or None if it is forged or expired."""
        try:
            claims = jwt.decode(value, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None
        sid = claims.get("sid")
        return sid if isinstance(sid, str) and sid else None


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a raw session token, as stored in the database."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return value


# ---------------------------------------------------------------------------
# Database-backed gateway
# ---------------------------------------------------------------------------


class DatabaseAuthGateway:
    """Email/password auth with server-side sessions stored in the app database.

    Args:
        database: Data-access handle; the gateway opens its own sessions.
        settings: Cookie, TTL, password and secret configuration.
    """

    def __init__(self, database: Database, settings: Settings) -> None:
        self._database = database
        self._settings = settings
        self._codec = SessionTokenCodec(settings.auth_secret)

    # -- cookies ------------------------------------------------------------

    def _session_cookie(self, signed_token: str) -> str:
        response = Response()
        response.set_cookie(
            self._settings.session_cookie_name,
            signed_token,
            max_age=self._settings.session_ttl_days * 86400,
            path="/",
            secure=self._settings.session_cookie_secure,
            httponly=True,
            samesite=self._settings.session_cookie_samesite,
        )
        return response.headers["set-cookie"]

    def _clear_cookie(self) -> str:
        response = Response()
        response.delete_cookie(
            self._settings.session_cookie_name,
            path="/",
            secure=self._settings.session_cookie_secure,
            httponly=True,
            samesite=self._settings.session_cookie_samesite,
        )
        return response.headers["set-cookie"]

    def _extract_token(self, headers: Mapping[str, str]) -> str | None:
        """Find the raw token in the Authorization header or the session cookie."""
        authorization = _header(headers, "authorization")
        if authorization and authorization.lower().startswith("bearer "):
            candidate = authorization[7:].strip()
            if candidate:
                return self._codec.decode(candidate)

        cookie_header = _header(headers, "cookie")
        if not cookie_header:
            return None
        value = cookie_parser(cookie_header).get(self._settings.session_cookie_name)
        if not value:
            return None
        return self._codec.decode(value)

    # -- sessions -----------------------------------------------------------

    async def _create_session(
        self, user: User, headers: Mapping[str, str] | None
    ) -> tuple[str, AuthSession]:
        token = secrets.token_urlsafe(32)
        headers = headers or {}
        forwarded = _header(headers, "x-forwarded-for")
        expires_at = utcnow() + timedelta(days=self._settings.session_ttl_days)
        auth_session = AuthSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=expires_at,
            ip_address=forwarded.split(",")[0].strip() if forwarded else None,
            user_agent=_header(headers, "user-agent"),
        )
        async with self._database.session() as db:
            db.add(auth_session)
        signed = self._codec.encode(token, user_id=user.id, expires_at=expires_at)
        return signed, auth_session

    async def _load_session(
        self, headers: Mapping[str, str]
    ) -> tuple[AuthSession, User] | None:
        token = self._extract_token(headers)
        if token is None:
            return None
        stmt = (
            select(AuthSession, User)
            .join(User, AuthSession.user_id == User.id)
            .where(AuthSession.token_hash == hash_token(token))
            .where(AuthSession.expires_at > utcnow())
        )
        async with self._database.session() as db:
            row = (await db.execute(stmt)).first()
        if row is None:
            return None
        return row[0], row[1]

    async def validate_session(self, headers: Mapping[str, str]) -> Identity | None:
        """Return the identity behind the request's session, or None."""
        loaded = await self._load_session(headers)
        if loaded is None:
            return None
        return Identity.from_user(loaded[1])

    async def get_session(self, headers: Mapping[str, str]) -> AuthResult:
        loaded = await self._load_session(headers)
        if loaded is None:
            return AuthResult(status_code=200, body=None)
        auth_session, user = loaded
        return AuthResult(
            status_code=200,
            body={
                "session": {
                    "id": auth_session.id,
                    "userId": auth_session.user_id,
                    "expiresAt": auth_session.expires_at.isoformat(),
                },
                "user": Identity.from_user(user).to_json(),
            },
        )

    # -- credentials --------------------------------------------------------

    def _check_password_policy(self, password: str) -> None:
        if len(password) < self._settings.password_min_length:
            raise AuthGatewayError("Password too short", status_code=400)
        if len(password.encode("utf-8")) > self._settings.password_max_length:
            raise AuthGatewayError("Password too long", status_code=400)

    async def sign_up_email(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str = UserRole.STUDENT.value,
        image: str | None = None,
        image_cld_pub_id: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AuthResult:
        """Create a user with a credential account and start a session.

        Raises:
            AuthGatewayError: 400 on password policy violations, 409 when the
                email is already registered.
        """
        self._check_password_policy(password)
        email = email.strip().lower()
        password_hash = await run_in_threadpool(
            hash_password, password, self._settings.bcrypt_rounds
        )

        user = User(
            name=name,
            email=email,
            role=role,
            image=image,
            image_cld_pub_id=image_cld_pub_id,
        )
        try:
            async with self._database.session() as db:
                existing = await db.scalar(
                    select(func.count()).select_from(User).where(User.email == email)
                )
                if existing:
                    raise AuthGatewayError("User already exists", status_code=409)
                db.add(user)
                await db.flush()
                db.add(
                    Account(
                        user_id=user.id,
                        provider_id=CREDENTIAL_PROVIDER,
                        password_hash=password_hash,
                    )
                )
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            raise AuthGatewayError("User already exists", status_code=409) from exc

        signed, _ = await self._create_session(user, headers)
        logger.info("Registered user id=%s role=%s", user.id, user.role)
        return AuthResult(
            status_code=200,
            body={"token": signed, "user": Identity.from_user(user).to_json()},
            set_cookies=[self._session_cookie(signed)],
        )

    async def sign_in_email(
        self,
        *,
        email: str,
        password: str,
        headers: Mapping[str, str] | None = None,
    ) -> AuthResult:
        """Verify credentials and start a session.

        Raises:
            AuthGatewayError: 401 for unknown email or wrong password.
        """
        email = email.strip().lower()
        stmt = (
            select(User, Account)
            .join(Account, Account.user_id == User.id)
            .where(User.email == email)
            .where(Account.provider_id == CREDENTIAL_PROVIDER)
        )
        async with self._database.session() as db:
            row = (await db.execute(stmt)).first()

        if row is None:
            raise AuthGatewayError("Invalid email or password", status_code=401)
        user, account = row[0], row[1]
        valid = await run_in_threadpool(
            verify_password, password, account.password_hash or ""
        )
        if not valid:
            raise AuthGatewayError("Invalid email or password", status_code=401)

        signed, _ = await self._create_session(user, headers)
        logger.info("User id=%s signed in", user.id)
        return AuthResult(
            status_code=200,
            body={"token": signed, "user": Identity.from_user(user).to_json()},
            set_cookies=[self._session_cookie(signed)],
        )

    async def sign_out(self, headers: Mapping[str, str]) -> AuthResult:
        """Revoke the current session (if any) and clear the cookie."""
        token = self._extract_token(headers)
        if token is not None:
            async with self._database.session() as db:
                await db.execute(
                    delete(AuthSession).where(AuthSession.token_hash == hash_token(token))
                )
        return AuthResult(
            status_code=200,
            body={"success": True},
            set_cookies=[self._clear_cookie()],
        )
