"""API key generation, password hashing, and JWT utilities."""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from autogestao.core.config import settings

_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1


def generate_api_key() -> str:
    """Generate a new API key: prefix + 64 hex chars (32 random bytes)."""
    return f"{settings.api_key_prefix}{secrets.token_hex(32)}"


def get_key_prefix(key: str) -> str:
    """Display prefix of an API key (first 8 chars, prefix included)."""
    return key[:8]


def parse_bearer_token(authorization: str | None) -> str | None:
    """Return the token of an ``Authorization: Bearer <token>`` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def hash_password(password: str) -> str:
    """scrypt hash with a random salt, encoded as ``scrypt$<salt>$<hash>``."""
    salt = secrets.token_hex(16)
    derived = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=64,
    )
    return f"scrypt${salt}${derived.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Verify a password against a stored ``scrypt$salt$hash`` value."""
    try:
        scheme, salt, expected = stored.split("$", 2)
    except ValueError:
        return False
    if scheme != "scrypt":
        return False
    derived = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=64,
    )
    return hmac.compare_digest(derived.hex(), expected)


def generate_one_time_token() -> str:
    """Random URL-safe token for refresh, email verification and password reset."""
    return secrets.token_urlsafe(32)


def sign_payload(secret: str, body: bytes) -> str:
    """HMAC-SHA256 signature header value for webhook deliveries."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def create_jwt_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT token with optional expiry."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.session_ttl_minutes)
    )
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_jwt_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token. Raises JWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
    )


def decode_session_token(token: str | None) -> dict[str, Any] | None:
    """Decode a session cookie value, returning None when missing or invalid."""
    if not token:
        return None
    try:
        return decode_jwt_token(token)
    except JWTError:
        return None
