"""JSON-file repository for user credentials."""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from food_log.adapters.json_collection import JsonCollection
from food_log.domain.users import UserCredential
from food_log.services.credentials import UserRepository


@dataclass
class JsonUserRepository(UserRepository):
    """Credentials stored in ``users.json``."""

    collection: JsonCollection

    def get_user(self, name: str) -> UserCredential | None:
        """Return the credential for an exact name."""
        record = self.collection.get("name", name)
        if record is None:
            return None
        return UserCredential(
            name=str(record["name"]), password=str(record.get("password", ""))
        )

    def add_user(self, credential: UserCredential) -> None:
        """Append a credential record."""
        self.collection.append(
            {"name": credential.name, "password": credential.password}
        )

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Open a transaction on the users collection."""
        return self.collection.transaction()

    async def persist(self) -> None:
        """Rewrite ``users.json``."""
        await self.collection.persist()
