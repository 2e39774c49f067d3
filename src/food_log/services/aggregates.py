"""Running calorie aggregates per food category."""

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from food_log.domain.entries import CategoryStat
from food_log.domain.errors import EntryValidationError, UnknownCategoryError

logger = logging.getLogger(__name__)


class CategoryRepository(Protocol):
    """Persistence interface for category aggregates."""

    def list_categories(self) -> list[CategoryStat]:
        """Return every known category."""

    def get_category(self, name: str) -> CategoryStat | None:
        """Return a category by case-insensitive name, if seeded."""

    def save_category(self, stat: CategoryStat) -> None:
        """Replace the in-memory record for a category."""

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Hold the category lock and roll back on failure."""

    async def persist(self) -> None:
        """Rewrite the category file from memory."""


@dataclass
class AggregateService:
    """Folds new food entries into their category's running average."""

    repository: CategoryRepository

    async def attribute_entry(
        self, category_tag: str, calories: int, image_path: str | None
    ) -> CategoryStat:
        """Record one sample for a category and persist the result."""
        async with self.repository.transaction():
            updated = self.stage_entry(category_tag, calories, image_path)
            await self.repository.persist()
        return updated

    def require_category(self, category_tag: str) -> CategoryStat:
        """Return the seeded category for a tag or raise."""
        stat = self.repository.get_category(category_tag)
        if stat is None:
            raise UnknownCategoryError(category_tag)
        return stat

    def stage_entry(
        self, category_tag: str, calories: int, image_path: str | None
    ) -> CategoryStat:
        """Apply a sample in memory; the caller holds the category transaction."""
        current = self.require_category(category_tag)
        updated = fold_sample(current, calories, image_path)
        self.repository.save_category(updated)
        logger.info(
            "Category aggregate updated",
            extra={
                "category": updated.name,
                "sample_count": updated.sample_count,
                "average_calories": updated.average_calories,
            },
        )
        return updated


def fold_sample(stat: CategoryStat, calories: int, image_path: str | None) -> CategoryStat:
    """Return the category with one more calorie sample folded in.

    The first sample of a freshly seeded category is adopted as-is, including
    its image. Later samples update the mean over the exact calorie total.
    """
    if calories < 0:
        raise EntryValidationError("Calories must not be negative.")
    if stat.sample_count == 0:
        return replace(
            stat,
            sample_count=1,
            average_calories=calories,
            calorie_total=calories,
            image_path=image_path,
        )
    total = stat.calorie_total + calories
    count = stat.sample_count + 1
    return replace(
        stat,
        sample_count=count,
        calorie_total=total,
        average_calories=rounded_mean(total, count),
    )


def rounded_mean(total: int, count: int) -> int:
    """Mean rounded to the nearest integer, halves away from zero."""
    mean = Decimal(total) / Decimal(count)
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))
