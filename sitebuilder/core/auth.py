"""
Password accounts and signed session tokens.

Passwords are hashed with bcrypt. Only the first 72 bytes of a password
count, matching the hashes already stored by the web client. Tokens are
HS256 JWTs carrying ``{id, email}`` and expire after ``jwt_expire_days``.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
import structlog

from sitebuilder.config import Settings, get_settings
from sitebuilder.core.exceptions import AuthError, InvalidCredentialsError, ValidationError
from sitebuilder.storage import User, UserStore

logger = structlog.get_logger(__name__)

BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class AuthService:
    """Registration, login and token verification."""

    def __init__(self, user_store: UserStore, settings: Optional[Settings] = None):
        self.user_store = user_store
        self.settings = settings or get_settings()

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.settings.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    @staticmethod
    def check_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    def create_token(self, user: User) -> str:
        """Create a signed token for a user."""
        now = datetime.now(timezone.utc)
        claims = {
            "id": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(days=self.settings.jwt_expire_days),
        }
        return jwt.encode(claims, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a token.

        Raises:
            AuthError: If the signature is wrong or the token has expired
        """
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
            )
        except jwt.InvalidTokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise AuthError("Invalid token") from e

    def register(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Create an account and return a token for it.

        Raises:
            ValidationError: If email or password is empty
            ConflictError: If the email is already registered
        """
        if not email or not password:
            raise ValidationError("Email and password required")

        user = self.user_store.add(email, self.hash_password(password))
        return self.create_token(user)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Check credentials and return a token.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password
        """
        user = self.user_store.get(email) if email else None
        if user is None or not password or not self.check_password(password, user.password):
            logger.info("login_failed")
            raise InvalidCredentialsError()

        logger.info("login_succeeded", user_id=user.id)
        return self.create_token(user)

    def authenticate_header(self, authorization: Optional[str]) -> Dict[str, Any]:
        """
        Resolve an ``Authorization: Bearer <token>`` header to an identity.

        Raises:
            AuthError: If the header is missing, malformed or the token invalid
        """
        if not authorization:
            raise AuthError("Missing authorization header")

        parts = authorization.split(" ")
        if len(parts) != 2:
            raise AuthError("Invalid authorization header")

        return self.verify_token(parts[1])
