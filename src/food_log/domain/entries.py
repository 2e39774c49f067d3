"""Domain models for food entries and category aggregates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FoodEntry:
    """A single logged food item."""

    name: str
    calories: int
    location: str
    category_tag: str
    image_path: str


@dataclass(frozen=True)
class FoodSubmission:
    """Validated fields of a new entry, before an image is attached."""

    name: str
    calories: int
    location: str
    category_tag: str


@dataclass(frozen=True)
class CategoryStat:
    """Running calorie aggregate for one food category."""

    name: str
    sample_count: int
    average_calories: int
    image_path: str | None
    calorie_total: int
