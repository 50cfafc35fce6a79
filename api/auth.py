"""Password hashing and signed auth tokens."""

import hashlib
import hmac
import logging
import secrets
from typing import Annotated

from fastapi import Header, HTTPException

from api.profiles import Profile, get_profile_store, normalize_email
from api.session import SessionSigner
from config import config

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120_000


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    """
    Hash a password with PBKDF2-SHA256.

    Returns:
        (hex digest, hex salt)
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        bytes.fromhex(salt),
        PBKDF2_ITERATIONS,
    )
    return digest.hex(), salt


def verify_password(password: str, profile: Profile) -> bool:
    """Check a password against the stored hash in constant time."""
    digest, _ = hash_password(password, profile.salt)
    return hmac.compare_digest(digest, profile.password_hash)


# Global signer instance for auth tokens
_auth_signer: SessionSigner | None = None


def get_auth_signer() -> SessionSigner:
    """Get or create the auth token signer."""
    global _auth_signer
    if _auth_signer is None:
        _auth_signer = SessionSigner(salt="auth")
    return _auth_signer


def issue_token(email: str) -> str:
    """Create a signed token identifying a logged-in player."""
    return get_auth_signer().sign(normalize_email(email))


def read_token(token: str) -> str | None:
    """Return the email inside a valid token, None otherwise."""
    return get_auth_signer().unsign(token, max_age=config.security.auth_token_ttl)


async def resolve_user(token: str | None) -> Profile | None:
    """Load the profile for an auth token; None for guests and bad tokens."""
    if not token:
        return None
    email = read_token(token)
    if email is None:
        logger.info("Rejected invalid or expired auth token")
        return None
    store = await get_profile_store()
    return await store.get(email)


async def optional_user(
    auth_token: Annotated[str | None, Header(alias="X-Auth-Token")] = None,
) -> Profile | None:
    """FastAPI dependency: the logged-in player, or None when playing as guest."""
    return await resolve_user(auth_token)


async def require_user(
    auth_token: Annotated[str | None, Header(alias="X-Auth-Token")] = None,
) -> Profile:
    """FastAPI dependency: the logged-in player, 401 otherwise."""
    profile = await resolve_user(auth_token)
    if profile is None:
        raise HTTPException(status_code=401, detail="You must be logged in.")
    return profile
