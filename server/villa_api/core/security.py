"""Password hashing and token helpers."""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWTError

from .config import settings

# scrypt parameters; stored values are "<hex hash>.<hex salt>"
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64
SALT_BYTES = 16

PASSWORD_RESET_PURPOSE = "password_reset"


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """
    Hash a password with scrypt and a random salt.

    Args:
        password: Plain-text password

    Returns:
        Stored representation in the form ``hash.salt`` (both hex)
    """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    """
    Check a plain-text password against a stored ``hash.salt`` value.

    The comparison runs in constant time. Malformed stored values never match.
    """
    hashed, sep, salt = (stored or "").partition(".")
    if not sep or not hashed or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(_scrypt(supplied, salt), expected)


def generate_session_token() -> str:
    """Return an opaque, URL-safe session identifier."""
    return secrets.token_urlsafe(32)


def generate_temporary_password(length: int = 12) -> str:
    """Return a random password for accounts created by an administrator."""
    return secrets.token_urlsafe(length)[:length]


def create_access_token(user: Any, expires_delta: Optional[timedelta] = None) -> str:
    """
    Mint a signed bearer token for a user.

    Args:
        user: User model instance
        expires_delta: Token lifetime, defaults to ``settings.jwt_expiry_days``

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(days=settings.jwt_expiry_days)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "isAdmin": bool(user.is_admin),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a bearer token, returning None when it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except PyJWTError:
        return None
    if payload.get("sub") is None or payload.get("purpose"):
        return None
    return payload


def password_fingerprint(stored_hash: str) -> str:
    """Short keyed digest of a stored password hash."""
    return hmac.new(settings.jwt_secret.encode("utf-8"), stored_hash.encode("utf-8"), hashlib.sha256).hexdigest()[:32]


def create_password_reset_token(user: Any) -> str:
    """Mint a short-lived token that authorises one password reset."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "pwd": password_fingerprint(user.password),
        "purpose": PASSWORD_RESET_PURPOSE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.password_reset_expiry_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_password_reset_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a password reset token, returning None if it is not valid for resets."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except PyJWTError:
        return None
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE or payload.get("sub") is None:
        return None
    return payload


def reset_token_matches(payload: Dict[str, Any], user: Any) -> bool:
    """Check a decoded reset token still belongs to this account and its current password."""
    if user.email.lower() != str(payload.get("email", "")).lower():
        return False
    return hmac.compare_digest(str(payload.get("pwd", "")), password_fingerprint(user.password))
