"""Password hashing for register/login, via passlib.

bcrypt is preferred; `BCRYPT_ROUNDS` tunes its cost. When the bcrypt
backend cannot initialize, pbkdf2_sha256 is used instead so the service
still starts.
"""
from __future__ import annotations

import logging

from passlib.context import CryptContext

from smartnotes import config

logger = logging.getLogger("smartnotes.auth")


def _build_context() -> CryptContext:
    rounds = config.bcrypt_rounds()
    try:
        ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", **({"bcrypt__rounds": rounds} if rounds else {}))
        ctx.hash("probe")
        return ctx
    except Exception as exc:
        logger.warning("bcrypt unavailable, falling back to pbkdf2_sha256: %s", exc)
        return CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            **({"pbkdf2_sha256__rounds": rounds} if rounds else {}),
        )


pwd_context = _build_context()


def hash_password(plain: str) -> str:
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """True if the password matches the stored hash; malformed hashes never match."""
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False
