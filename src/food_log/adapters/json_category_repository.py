"""JSON-file repository for category aggregates."""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from food_log.adapters.json_collection import JsonCollection, Record
from food_log.domain.entries import CategoryStat
from food_log.services.aggregates import CategoryRepository


@dataclass
class JsonCategoryRepository(CategoryRepository):
    """Category aggregates stored in ``foodTypes.json``."""

    collection: JsonCollection

    def list_categories(self) -> list[CategoryStat]:
        """Return every category in file order."""
        return [_parse_record(record) for record in self.collection.all()]

    def get_category(self, name: str) -> CategoryStat | None:
        """Return a category by case-insensitive name."""
        record = self.collection.get("name", name, ignore_case=True)
        return None if record is None else _parse_record(record)

    def save_category(self, stat: CategoryStat) -> None:
        """Replace the stored record of a category."""
        self.collection.upsert("name", _to_record(stat), ignore_case=True)

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Open a transaction on the category collection."""
        return self.collection.transaction()

    async def persist(self) -> None:
        """Rewrite ``foodTypes.json``."""
        await self.collection.persist()


def _parse_record(record: Record) -> CategoryStat:
    count = _to_int(record.get("num"))
    average = _to_int(record.get("avgCal"))
    total = record.get("calTotal")
    image_path = record.get("imagePath")
    return CategoryStat(
        name=str(record.get("name", "")),
        sample_count=count,
        average_calories=average,
        image_path=str(image_path) if image_path else None,
        calorie_total=_to_int(total) if total is not None else average * count,
    )


def _to_record(stat: CategoryStat) -> Record:
    return {
        "name": stat.name,
        "num": stat.sample_count,
        "avgCal": stat.average_calories,
        "imagePath": stat.image_path,
        "calTotal": stat.calorie_total,
    }


def _to_int(value: object, default: int = 0) -> int:
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return default
