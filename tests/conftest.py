"""Shared test fixtures."""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from food_log.config import Settings
from food_log.containers import AppContainer, build_container
from food_log.domain.entries import CategoryStat, FoodEntry
from food_log.domain.errors import StorageFaultError
from food_log.domain.events import EventKind
from food_log.domain.users import UserCredential
from food_log.services.aggregates import AggregateService, CategoryRepository
from food_log.services.credentials import UserRepository
from food_log.services.entries import (
    FoodEntryRepository,
    FoodEntryService,
    GroupRepository,
    ImageStore,
)

SEED_CATEGORIES = [
    {"name": "fruit", "num": 0, "avgCal": 0, "imagePath": None},
    {"name": "Vegetable", "num": 2, "avgCal": 40, "imagePath": "/uploads/veg.jpg"},
]
SEED_GROUPS = [{"name": "Breakfast club", "members": ["ana", "li"]}]


@dataclass
class InMemoryCategoryRepository(CategoryRepository):
    """In-memory category repository for tests."""

    categories: dict[str, CategoryStat] = field(default_factory=dict)
    persisted: list[dict[str, CategoryStat]] = field(default_factory=list)
    fail_persist: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def seed(
        self, name: str, sample_count: int = 0, average_calories: int = 0
    ) -> CategoryStat:
        stat = CategoryStat(
            name=name,
            sample_count=sample_count,
            average_calories=average_calories,
            image_path=None,
            calorie_total=sample_count * average_calories,
        )
        self.categories[name.lower()] = stat
        return stat

    def list_categories(self) -> list[CategoryStat]:
        return list(self.categories.values())

    def get_category(self, name: str) -> CategoryStat | None:
        return self.categories.get(name.lower())

    def save_category(self, stat: CategoryStat) -> None:
        self.categories[stat.name.lower()] = stat

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[object]:
        async with self.lock:
            snapshot = dict(self.categories)
            try:
                yield self
            except BaseException:
                self.categories = snapshot
                raise

    async def persist(self) -> None:
        await asyncio.sleep(0)
        if self.fail_persist:
            raise StorageFaultError("categories disk full")
        self.persisted.append(dict(self.categories))


@dataclass
class InMemoryFoodEntryRepository(FoodEntryRepository):
    """In-memory food entry repository for tests."""

    entries: list[FoodEntry] = field(default_factory=list)
    persisted: list[list[FoodEntry]] = field(default_factory=list)
    fail_persist: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def list_entries(self) -> list[FoodEntry]:
        return list(self.entries)

    def add_entry(self, entry: FoodEntry) -> None:
        self.entries.append(entry)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[object]:
        async with self.lock:
            snapshot = list(self.entries)
            try:
                yield self
            except BaseException:
                self.entries = snapshot
                raise

    async def persist(self) -> None:
        await asyncio.sleep(0)
        if self.fail_persist:
            raise StorageFaultError("entries disk full")
        self.persisted.append(list(self.entries))


@dataclass
class InMemoryGroupRepository(GroupRepository):
    """In-memory group repository for tests."""

    groups: list[dict[str, object]] = field(default_factory=list)

    def list_groups(self) -> list[dict[str, object]]:
        return list(self.groups)


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory credential repository for tests."""

    users: dict[str, UserCredential] = field(default_factory=dict)
    persist_calls: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def get_user(self, name: str) -> UserCredential | None:
        return self.users.get(name)

    def add_user(self, credential: UserCredential) -> None:
        self.users[credential.name] = credential

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[object]:
        async with self.lock:
            snapshot = dict(self.users)
            try:
                yield self
            except BaseException:
                self.users = snapshot
                raise

    async def persist(self) -> None:
        await asyncio.sleep(0)
        self.persist_calls += 1


@dataclass
class FakeImageStore(ImageStore):
    """Image store that keeps bytes in memory."""

    images: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    async def save(self, filename: str | None, content: bytes) -> str:
        path = f"/uploads/{len(self.images) + len(self.deleted)}-{filename or 'image'}"
        self.images[path] = content
        return path

    def delete(self, image_path: str) -> None:
        self.images.pop(image_path, None)
        self.deleted.append(image_path)


@dataclass
class RecordingNotifier:
    """Notifier that records emitted event kinds."""

    events: list[EventKind] = field(default_factory=list)

    def emit(self, kind: EventKind) -> int:
        self.events.append(kind)
        return 0


@pytest.fixture
def category_repository() -> InMemoryCategoryRepository:
    repository = InMemoryCategoryRepository()
    repository.seed("fruit")
    repository.seed("Vegetable", sample_count=2, average_calories=40)
    return repository


@pytest.fixture
def entry_repository() -> InMemoryFoodEntryRepository:
    return InMemoryFoodEntryRepository()


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def food_entry_service(
    category_repository: InMemoryCategoryRepository,
    entry_repository: InMemoryFoodEntryRepository,
    image_store: FakeImageStore,
    notifier: RecordingNotifier,
) -> FoodEntryService:
    return FoodEntryService(
        entries=entry_repository,
        groups=InMemoryGroupRepository(list(SEED_GROUPS)),
        aggregates=AggregateService(category_repository),
        image_store=image_store,
        notifier=notifier,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        uploads_dir=tmp_path / "uploads",
        public_dir=tmp_path / "public",
        environment="test",
    )


@pytest.fixture
def seeded_settings(settings: Settings) -> Settings:
    settings.data_dir.mkdir(parents=True)
    settings.collection_path(settings.food_types_file).write_text(
        json.dumps(SEED_CATEGORIES, indent=2), encoding="utf-8"
    )
    settings.collection_path(settings.groups_file).write_text(
        json.dumps(SEED_GROUPS, indent=2), encoding="utf-8"
    )
    return settings


@pytest.fixture
def container(seeded_settings: Settings) -> AppContainer:
    return build_container(seeded_settings)
