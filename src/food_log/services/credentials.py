"""Trust-on-first-use credential gate."""

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from food_log.domain.users import UserCredential, Verdict

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user credentials."""

    def get_user(self, name: str) -> UserCredential | None:
        """Return the credential stored for a name, if present."""

    def add_user(self, credential: UserCredential) -> None:
        """Add a credential to the in-memory collection."""

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Hold the users lock and roll back on failure."""

    async def persist(self) -> None:
        """Rewrite the users file from memory."""


@dataclass
class CredentialService:
    """Checks name/password pairs, registering unseen names on first use.

    Passwords are stored and compared as plain text.
    """

    repository: UserRepository

    async def check_or_register(self, name: str, password: str) -> Verdict:
        """Return the verdict for a name/password pair."""
        if not name:
            return Verdict.REJECTED
        async with self.repository.transaction():
            existing = self.repository.get_user(name)
            if existing is not None:
                if existing.password == password:
                    return Verdict.MATCH
                return Verdict.MISMATCH
            self.repository.add_user(UserCredential(name=name, password=password))
            await self.repository.persist()
        logger.info("Registered new user", extra={"user_name": name})
        return Verdict.REGISTERED
