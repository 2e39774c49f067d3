"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from food_log.adapters.json_category_repository import JsonCategoryRepository
from food_log.adapters.json_collection import JsonCollection
from food_log.adapters.json_food_entry_repository import JsonFoodEntryRepository
from food_log.adapters.json_group_repository import JsonGroupRepository
from food_log.adapters.json_user_repository import JsonUserRepository
from food_log.adapters.local_image_store import LocalImageStore
from food_log.config import Settings
from food_log.services.aggregates import AggregateService
from food_log.services.credentials import CredentialService
from food_log.services.entries import FoodEntryService
from food_log.services.notifications import Broadcaster, SubscriberRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    aggregate_service: AggregateService
    food_entry_service: FoodEntryService
    credential_service: CredentialService
    registry: SubscriberRegistry
    broadcaster: Broadcaster
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Load the JSON collections and create the default container."""
    resolved_settings = settings or Settings()
    entry_repository = JsonFoodEntryRepository(
        JsonCollection.load(resolved_settings.collection_path(resolved_settings.food_data_file))
    )
    category_repository = JsonCategoryRepository(
        JsonCollection.load(resolved_settings.collection_path(resolved_settings.food_types_file))
    )
    group_repository = JsonGroupRepository(
        JsonCollection.load(resolved_settings.collection_path(resolved_settings.groups_file))
    )
    user_repository = JsonUserRepository(
        JsonCollection.load(resolved_settings.collection_path(resolved_settings.users_file))
    )
    registry = SubscriberRegistry()
    broadcaster = Broadcaster(registry)
    aggregate_service = AggregateService(category_repository)
    food_entry_service = FoodEntryService(
        entries=entry_repository,
        groups=group_repository,
        aggregates=aggregate_service,
        image_store=LocalImageStore(resolved_settings.uploads_dir),
        notifier=broadcaster if resolved_settings.notify_on_data_change else None,
    )
    credential_service = CredentialService(user_repository)

    async def close_resources() -> None:
        registry.close_all()

    return AppContainer(
        settings=resolved_settings,
        aggregate_service=aggregate_service,
        food_entry_service=food_entry_service,
        credential_service=credential_service,
        registry=registry,
        broadcaster=broadcaster,
        close_resources=close_resources,
    )
