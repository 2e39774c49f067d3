"""JSON-file repository for food entries."""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from food_log.adapters.json_collection import JsonCollection, Record
from food_log.domain.entries import FoodEntry
from food_log.services.entries import FoodEntryRepository


@dataclass
class JsonFoodEntryRepository(FoodEntryRepository):
    """Food entries stored in ``foodData.json``."""

    collection: JsonCollection

    def list_entries(self) -> list[FoodEntry]:
        """Return entries in submission order."""
        return [_parse_record(record) for record in self.collection.all()]

    def add_entry(self, entry: FoodEntry) -> None:
        """Append an entry record."""
        self.collection.append(
            {
                "name": entry.name,
                "cal": entry.calories,
                "loc": entry.location,
                "tag": entry.category_tag,
                "imagePath": entry.image_path,
            }
        )

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Open a transaction on the entries collection."""
        return self.collection.transaction()

    async def persist(self) -> None:
        """Rewrite ``foodData.json``."""
        await self.collection.persist()


def _parse_record(record: Record) -> FoodEntry:
    # Older files store ``cal`` as the raw form string.
    raw_calories = record.get("cal")
    try:
        calories = int(str(raw_calories).strip())
    except ValueError:
        calories = 0
    return FoodEntry(
        name=str(record.get("name") or ""),
        calories=calories,
        location=str(record.get("loc") or ""),
        category_tag=str(record.get("tag") or ""),
        image_path=str(record.get("imagePath") or ""),
    )
