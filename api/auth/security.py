"""
Credential helpers: bcrypt password hashes, JWT access tokens and the
single-use password tokens handed out when an account is created.

Only sha256 digests of password tokens are stored; the raw token travels in
the set-password link.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from core import config

ACCESS_TOKEN_TYPE = "access"
PASSWORD_TOKEN_BYTES = 32


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Set JWT_SECRET outside local development.
    return config.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def access_token_expire_minutes() -> int:
    return config.env_int("ACCESS_TOKEN_EXPIRE_MIN", 60)


def _utf8(value: str | None) -> bytes:
    return (value or "").encode("utf-8")


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(_utf8(plain_password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_utf8(plain_password), _utf8(password_hash))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def build_access_token(*, user_id: int, email: str) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=access_token_expire_minutes()),
    }
    return jwt.encode(claims, jwt_secret(), algorithm=jwt_algorithm())


def access_token_user_id(token: str) -> int:
    """
    Validate an access token and return the user id it was issued for.
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        claims = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise AuthSecurityError("Token is not an access token.")

    subject = str(claims.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthSecurityError("Invalid access token subject.")
    return int(subject)


def hash_token(raw_token: str) -> str:
    if not raw_token:
        raise AuthSecurityError("Token is empty.")
    return hashlib.sha256(_utf8(raw_token)).hexdigest()


def generate_token_hash() -> tuple[str, str]:
    """
    Return (token, sha256 hash). Only the hash is stored; the token goes to the user.
    """
    token = secrets.token_urlsafe(PASSWORD_TOKEN_BYTES)
    return token, hash_token(token)
