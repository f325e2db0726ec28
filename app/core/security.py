"""JWT authentication and password hashing utilities."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt()
    ).decode("utf-8")


def _encode(claims: dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = dict(claims)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a JWT access token."""
    logger.debug("Creating access token", extra={"subject": subject})
    claims: dict[str, Any] = {"sub": subject, "type": "access"}
    if extra_claims:
        claims.update(extra_claims)
    return _encode(
        claims,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(
    subject: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token."""
    logger.debug("Creating refresh token", extra={"subject": subject})
    return _encode(
        {"sub": subject, "type": "refresh"},
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise InvalidTokenError(str(e)) from e

    token_type = payload.get("type")
    if token_type != expected_type:
        logger.warning("Token type mismatch", extra={"expected": expected_type, "got": token_type})
        raise InvalidTokenError(f"Expected {expected_type} token, got {token_type}")

    if payload.get("sub") is None:
        logger.warning("Token missing subject")
        raise InvalidTokenError("Token missing subject")

    return payload


def verify_access_token(token: str) -> str:
    """Verify access token and return the subject (user_id)."""
    return decode_token(token, expected_type="access")["sub"]


def verify_refresh_token(token: str) -> str:
    """Verify refresh token and return the subject (user_id)."""
    return decode_token(token, expected_type="refresh")["sub"]
