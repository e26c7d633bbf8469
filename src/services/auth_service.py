"""Service layer for registration, login and password hashing."""
import asyncio
import hashlib
import logging
from functools import lru_cache

import bcrypt

from schemas.user import UserLogin, UserRegister
from services.exceptions import InvalidCredentialsError
from services.records import UserRecord
from services.user_store import UserStore

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12


def _prehash(password: str) -> bytes:
    """
    SHA-256 the password before bcrypt.

    bcrypt only looks at the first 72 bytes; pre-hashing keeps long
    passphrases fully significant.
    """
    return hashlib.sha256(password.encode()).hexdigest().encode()


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the password."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash."""
    return bcrypt.checkpw(_prehash(password), password_hash.encode())


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds)


class AuthService:
    """Registration and credential checks on top of a UserStore."""

    def __init__(self, users: UserStore, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.users = users
        self.bcrypt_rounds = bcrypt_rounds

    async def register(self, data: UserRegister) -> UserRecord:
        """
        Create a user with a hashed password.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        # bcrypt is CPU-bound; keep it off the event loop
        password_hash = await asyncio.to_thread(
            hash_password, data.password, self.bcrypt_rounds,
        )
        user = await self.users.create(data.name, data.email, password_hash)
        logger.info("Registered user %s", user.id)
        return user

    async def authenticate(self, data: UserLogin) -> UserRecord:
        """
        Return the user for a matching email/password pair.

        Unknown emails still run a bcrypt comparison so response time does not
        reveal which emails are registered.

        Raises:
            InvalidCredentialsError: On unknown email or wrong password.
        """
        user = await self.users.find_by_email(data.email)
        stored_hash = user.password_hash if user else _dummy_hash(self.bcrypt_rounds)
        matches = await asyncio.to_thread(verify_password, data.password, stored_hash)
        if user is None or not matches:
            logger.warning("Failed login attempt")
            raise InvalidCredentialsError()
        return user
