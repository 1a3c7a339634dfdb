# taskmanager/security.py
from __future__ import annotations

from functools import lru_cache

from passlib.context import CryptContext

_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return _pwd.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return _pwd.verify(plain, hashed)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return _pwd.hash("not-a-real-password")


def dummy_verify(plain: str) -> bool:
    """Burn the same bcrypt time as a real check when there is no user to check against."""
    _pwd.verify(plain, _dummy_hash())
    return False


__all__ = [
    "hash_password",
    "verify_password",
    "dummy_verify",
]
