"""
Nexus Forum Backend — Auth Service
===================================

What:  Password hashing/verification and signed-token issuance for
       register and login.
How:   werkzeug.security produces salted hashes (the method and salt are
       embedded in the stored string). PyJWT signs tokens carrying the user
       id and username with a fixed expiry (TOKEN_TTL_DAYS, default 7).
Who:   Called by the auth routes; decode_token is also used to default the
       acting user on writes.

Login failure policy:
    Unknown identifier and wrong password raise the same AuthError with the
    same message, so responses do not reveal which usernames exist.

Hashing is CPU-bound, so it runs in Starlette's thread pool instead of on
the event loop.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import jwt
from starlette.concurrency import run_in_threadpool
from werkzeug.security import check_password_hash, generate_password_hash

from nexus_forum.config import settings
from nexus_forum.database import utcnow
from nexus_forum.exceptions import AuthError
from nexus_forum.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from nexus_forum.services.store_base import ForumStore

logger = logging.getLogger(__name__)


class AuthService:
    """
    Stateless auth helper.

    Responsibilities:
        - register(): hash → insert user → token
        - login(): look up → verify → bump last_seen → token
        - issue_token() / decode_token(): JWT round trip
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        ttl: Optional[timedelta] = None,
    ):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.ttl = ttl or timedelta(days=settings.token_ttl_days)

    # ── Passwords ─────────────────────────────────────────────────────────

    async def hash_password(self, password: str) -> str:
        return await run_in_threadpool(generate_password_hash, password)

    async def verify_password(self, password_hash: str, password: str) -> bool:
        return await run_in_threadpool(check_password_hash, password_hash, password)

    # ── Tokens ────────────────────────────────────────────────────────────

    def issue_token(self, user_id: int, username: str) -> str:
        now = utcnow()
        payload = {
            "id": user_id,
            "username": username,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry and return the claims.

        Raises:
            AuthError: malformed, tampered or expired token
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise AuthError(message="Token has expired") from e
        except jwt.PyJWTError as e:
            raise AuthError(message="Invalid token", context={"original_error": str(e)}) from e

    # ── Workflows ─────────────────────────────────────────────────────────

    async def register(self, store: ForumStore, request: RegisterRequest) -> AuthResponse:
        """
        Create an account and sign the caller in.

        Raises:
            ConflictError: username or email already registered (→ 400)
        """
        password_hash = await self.hash_password(request.password)
        user = await store.create_user(request.username, request.email, password_hash)
        logger.info("User registered: id=%s username=%s", user.id, user.username)
        return AuthResponse(
            user=UserPublic(id=user.id, username=user.username, email=user.email),
            token=self.issue_token(user.id, user.username),
        )

    async def login(self, store: ForumStore, request: LoginRequest) -> AuthResponse:
        """
        Verify credentials, update last_seen, and return a fresh token.

        Raises:
            AuthError: unknown identifier or wrong password (→ 401)
        """
        credentials = await store.get_user_credentials(request.username_or_email)
        if credentials is None or not await self.verify_password(
            credentials.password_hash, request.password
        ):
            logger.info("Failed login attempt")
            raise AuthError()

        await store.touch_last_seen(credentials.id)
        logger.info("User logged in: id=%s", credentials.id)
        return AuthResponse(
            user=UserPublic.model_validate(credentials.model_dump(exclude={"password_hash"})),
            token=self.issue_token(credentials.id, credentials.username),
        )


auth_service = AuthService()
