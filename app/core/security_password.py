# app/core/security_password.py
"""Password hashing for user accounts.

argon2 is the active scheme; bcrypt hashes from older imports still verify
and are rehashed on the next successful login.
"""
from __future__ import annotations
from typing import NamedTuple, Optional
from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["argon2", "bcrypt_sha256", "bcrypt"],
    deprecated="auto",
    argon2__time_cost=2,
    argon2__memory_cost=19456,
    argon2__parallelism=1,
)

# verified against when the email is unknown so both failure paths cost the same
_DUMMY_HASH = pwd_context.hash("learnlite-dummy-password")


class PasswordCheck(NamedTuple):
    ok: bool
    new_hash: Optional[str] = None


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def check_password(plain: str, stored_hash: Optional[str]) -> PasswordCheck:
    """Verify ``plain``; ``new_hash`` is set when the stored scheme is deprecated.

    A missing or unrecognised stored hash is a failed check, never an error.
    """
    if not stored_hash:
        pwd_context.verify(plain, _DUMMY_HASH)
        return PasswordCheck(False)
    try:
        ok = pwd_context.verify(plain, stored_hash)
    except ValueError:
        return PasswordCheck(False)
    if not ok:
        return PasswordCheck(False)
    if pwd_context.needs_update(stored_hash):
        return PasswordCheck(True, pwd_context.hash(plain))
    return PasswordCheck(True)
