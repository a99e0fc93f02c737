"""Verification of access tokens issued by the hosted auth provider."""

import hmac
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from clinicops.core.config import settings


# =============================================================================
# Access Token (JWT in Authorization header)
# =============================================================================

def create_access_token(user_id: UUID, email: str | None = None) -> str:
    """
    Mint an access token shaped like the auth provider's.
    
    Production tokens come from the provider; this exists for the CLI
    and for tests.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "aud": settings.AUTH_JWT_AUDIENCE,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(hours=settings.AUTH_JWT_EXPIRES_HOURS),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.
    
    Tries current secret first, then previous (for rotation support).
    
    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=settings.AUTH_JWT_AUDIENCE,
            )
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_secret(provided: str | None, expected: str) -> bool:
    """Constant-time comparison; an unset expected secret never matches."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())
