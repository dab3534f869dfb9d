"""
Security utilities: JWT creation/verification and password hashing.
Passwords are hashed with bcrypt via passlib. Tokens use python-jose.
"""
from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# ── Password hashing ──────────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Return bcrypt hash of the given plain-text password."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if plain_password matches the stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ── JWT helpers ───────────────────────────────────────────────────────────────

def _create_token(
    subject: str,
    token_type: str,
    secret_key: str,
    expire_delta: timedelta,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expire_delta,
        "jti": secrets.token_hex(16),
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, secret_key, algorithm=settings.ALGORITHM)


def _decode_token(token: str, secret_key: str, token_type: str) -> dict[str, Any]:
    payload = jwt.decode(token, secret_key, algorithms=[settings.ALGORITHM])
    if payload.get("type") != token_type:
        raise JWTError("Invalid token type")
    return payload


def create_access_token(user_id: str, role: str) -> str:
    """Create a short-lived JWT access token."""
    return _create_token(
        subject=user_id,
        token_type="access",
        secret_key=settings.SECRET_KEY,
        expire_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        extra_claims={"role": role},
    )


def create_refresh_token(user_id: str) -> str:
    """Create a long-lived JWT refresh token."""
    return _create_token(
        subject=user_id,
        token_type="refresh",
        secret_key=settings.REFRESH_SECRET_KEY,
        expire_delta=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_invite_token(user_id: str) -> str:
    """Create the token embedded in an invitation link."""
    return _create_token(
        subject=user_id,
        token_type="invite",
        secret_key=settings.SECRET_KEY,
        expire_delta=timedelta(hours=settings.INVITE_TOKEN_EXPIRE_HOURS),
    )


def create_collaboration_token(
    user_id: str,
    *,
    document_id: str,
    doc_key: str,
    name: str,
    role: str,
) -> tuple[str, datetime]:
    """
    Create a token accepted by the hosted document sync service.
    Returns the token and its expiry.
    """
    expire_delta = timedelta(minutes=settings.COLLAB_TOKEN_EXPIRE_MINUTES)
    token = _create_token(
        subject=user_id,
        token_type="collab",
        secret_key=settings.COLLAB_SECRET_KEY,
        expire_delta=expire_delta,
        extra_claims={
            "doc": doc_key,
            "document_id": document_id,
            "name": name,
            "role": role,
        },
    )
    return token, datetime.now(timezone.utc) + expire_delta


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token.
    Raises JWTError on failure.
    """
    return _decode_token(token, settings.SECRET_KEY, "access")


def decode_refresh_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a refresh token.
    Raises JWTError on failure.
    """
    return _decode_token(token, settings.REFRESH_SECRET_KEY, "refresh")


def decode_invite_token(token: str) -> dict[str, Any]:
    return _decode_token(token, settings.SECRET_KEY, "invite")


def decode_collaboration_token(token: str) -> dict[str, Any]:
    return _decode_token(token, settings.COLLAB_SECRET_KEY, "collab")


def hash_token(token: str) -> str:
    """Return a SHA-256 hex digest of a token for safe DB storage."""
    return hashlib.sha256(token.encode()).hexdigest()


# ── Password policy ───────────────────────────────────────────────────────────

PASSWORD_MIN_LENGTH = 8


def password_policy_violations(password: str) -> list[str]:
    """Return every password rule the given password breaks, in a stable order."""
    violations: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if not any(c.isupper() for c in password):
        violations.append("one uppercase letter")
    if not any(c.islower() for c in password):
        violations.append("one lowercase letter")
    if not any(c.isdigit() for c in password):
        violations.append("one number")
    return violations


def validate_password_strength(password: str) -> str:
    """
    Enforce password policy:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    Returns the password unchanged if valid. Otherwise raises ValueError
    naming every missing rule.
    """
    violations = password_policy_violations(password)
    if violations:
        raise ValueError("Password must contain " + ", ".join(violations))
    return password
