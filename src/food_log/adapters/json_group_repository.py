"""JSON-file repository for groups."""

from dataclasses import dataclass

from food_log.adapters.json_collection import JsonCollection
from food_log.services.entries import GroupRepository


@dataclass
class JsonGroupRepository(GroupRepository):
    """Read-only groups stored in ``groups.json``."""

    collection: JsonCollection

    def list_groups(self) -> list[dict[str, object]]:
        """Return groups as stored."""
        return self.collection.all()
