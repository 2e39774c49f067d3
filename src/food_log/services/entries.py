"""Food entry submission and queries."""

import logging
from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from food_log.domain.entries import CategoryStat, FoodEntry, FoodSubmission
from food_log.domain.errors import EntryValidationError
from food_log.domain.events import EventKind
from food_log.services.aggregates import AggregateService

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Name, calorie data, and image are required."


class FoodEntryRepository(Protocol):
    """Persistence interface for food entries."""

    def list_entries(self) -> list[FoodEntry]:
        """Return every logged entry in submission order."""

    def add_entry(self, entry: FoodEntry) -> None:
        """Append an entry to the in-memory collection."""

    def transaction(self) -> AbstractAsyncContextManager[object]:
        """Hold the entries lock and roll back on failure."""

    async def persist(self) -> None:
        """Rewrite the entries file from memory."""


class GroupRepository(Protocol):
    """Read-only access to groups."""

    def list_groups(self) -> list[dict[str, object]]:
        """Return all groups as stored."""


class ImageStore(Protocol):
    """Storage for uploaded entry images."""

    async def save(self, filename: str | None, content: bytes) -> str:
        """Store an image and return its public path."""

    def delete(self, image_path: str) -> None:
        """Remove a stored image; missing files are ignored."""


class ChangeNotifier(Protocol):
    """Receiver of data-change notifications."""

    def emit(self, kind: EventKind) -> int:
        """Broadcast an event."""


@dataclass
class FoodEntryService:
    """Application service for food entries, categories and groups."""

    entries: FoodEntryRepository
    groups: GroupRepository
    aggregates: AggregateService
    image_store: ImageStore
    notifier: ChangeNotifier | None = None

    def list_entries(self, search: str | None = None) -> list[FoodEntry]:
        """Return entries, filtered by exact case-insensitive category tag."""
        entries = self.entries.list_entries()
        if not search:
            return entries
        keyword = search.lower()
        return [entry for entry in entries if entry.category_tag.lower() == keyword]

    def list_categories(self, search: str | None = None) -> list[CategoryStat]:
        """Return categories whose name contains the search text."""
        categories = self.aggregates.repository.list_categories()
        if not search:
            return categories
        keyword = search.lower()
        return [stat for stat in categories if keyword in stat.name.lower()]

    def list_groups(self) -> list[dict[str, object]]:
        """Return all groups."""
        return self.groups.list_groups()

    def select_items(
        self, image_paths: Iterable[str], category_names: Iterable[str]
    ) -> tuple[list[FoodEntry], list[CategoryStat]]:
        """Return entries and categories matching explicit selections."""
        wanted_images = set(image_paths)
        wanted_names = set(category_names)
        entries = [
            entry
            for entry in self.entries.list_entries()
            if entry.image_path in wanted_images
        ]
        categories = [
            stat
            for stat in self.aggregates.repository.list_categories()
            if stat.name in wanted_names
        ]
        return entries, categories

    async def add_entry(
        self,
        submission: FoodSubmission,
        image_filename: str | None,
        image_content: bytes,
    ) -> FoodEntry:
        """Store a new entry and fold it into its category, atomically.

        Nothing is written when the category is unknown. When persisting
        fails, both collections and their files are rolled back and the
        stored image is removed.
        """
        categories = self.aggregates.repository
        image_path: str | None = None
        try:
            async with categories.transaction(), self.entries.transaction():
                self.aggregates.require_category(submission.category_tag)
                image_path = await self.image_store.save(image_filename, image_content)
                entry = FoodEntry(
                    name=submission.name,
                    calories=submission.calories,
                    location=submission.location,
                    category_tag=submission.category_tag,
                    image_path=image_path,
                )
                self.aggregates.stage_entry(
                    submission.category_tag, submission.calories, image_path
                )
                self.entries.add_entry(entry)
                await categories.persist()
                await self.entries.persist()
        except BaseException:
            if image_path is not None:
                self.image_store.delete(image_path)
            raise
        logger.info(
            "Food entry added",
            extra={"category": entry.category_tag, "image_path": entry.image_path},
        )
        if self.notifier is not None:
            self.notifier.emit(EventKind.DATA_CHANGED)
        return entry


def parse_submission(
    name: str | None,
    calories: str | None,
    location: str | None,
    category_tag: str | None,
) -> FoodSubmission:
    """Validate raw form fields of a submission."""
    if not name or not calories:
        raise EntryValidationError(REQUIRED_FIELDS_MESSAGE)
    try:
        parsed_calories = int(calories.strip())
    except ValueError as exc:
        raise EntryValidationError("Calories must be a whole number.") from exc
    if parsed_calories < 0:
        raise EntryValidationError("Calories must not be negative.")
    if not category_tag:
        raise EntryValidationError("A category tag is required.")
    return FoodSubmission(
        name=name,
        calories=parsed_calories,
        location=location or "",
        category_tag=category_tag,
    )
