from functools import lru_cache

from passlib.context import CryptContext


@lru_cache
def _crypt_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(plain_password: str, *, rounds: int) -> str:
    return _crypt_context(rounds).hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return _crypt_context().verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognizable hash.
        return False
