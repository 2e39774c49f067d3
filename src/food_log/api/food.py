"""Food entry, category and group endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from food_log.api.models import SelectedItemsRequest
from food_log.domain.errors import EntryValidationError
from food_log.services.entries import REQUIRED_FIELDS_MESSAGE, parse_submission

if TYPE_CHECKING:
    from food_log.containers import AppContainer
    from food_log.domain.entries import CategoryStat, FoodEntry

router = APIRouter(prefix="/api", tags=["food"])


@router.get("/foodData")
async def list_food_data(request: Request, search: str = "") -> list[dict[str, object]]:
    """Return entries, optionally filtered by category tag."""
    container: AppContainer = request.app.state.container
    entries = container.food_entry_service.list_entries(search)
    return [serialize_entry(entry) for entry in entries]


@router.get("/foodType")
async def list_food_types(request: Request, search: str = "") -> list[dict[str, object]]:
    """Return category aggregates, optionally filtered by name."""
    container: AppContainer = request.app.state.container
    categories = container.food_entry_service.list_categories(search)
    return [serialize_category(stat) for stat in categories]


@router.get("/groups")
async def list_groups(request: Request) -> list[dict[str, object]]:
    """Return all groups."""
    container: AppContainer = request.app.state.container
    return container.food_entry_service.list_groups()


@router.post("/selectedItems")
async def selected_items(
    selection: SelectedItemsRequest, request: Request
) -> dict[str, object]:
    """Return entries and categories matching the client's selections."""
    container: AppContainer = request.app.state.container
    entries, categories = container.food_entry_service.select_items(
        selection.image_paths, selection.category_names
    )
    return {
        "set1Matches": [serialize_entry(entry) for entry in entries],
        "set2Matches": [serialize_category(stat) for stat in categories],
    }


@router.post("/addFoodData", status_code=status.HTTP_201_CREATED)
async def add_food_data(  # noqa: PLR0913
    request: Request,
    name: str | None = Form(default=None),
    cal: str | None = Form(default=None),
    loc: str | None = Form(default=None),
    tag: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
) -> dict[str, object]:
    """Store a submitted entry with its image and update its category."""
    container: AppContainer = request.app.state.container
    if image is None:
        raise EntryValidationError(REQUIRED_FIELDS_MESSAGE)
    submission = parse_submission(name, cal, loc, tag)
    content = await image.read()
    entry = await container.food_entry_service.add_entry(
        submission, image.filename, content
    )
    return {"message": "Food data added successfully!", "data": serialize_entry(entry)}


def serialize_entry(entry: FoodEntry) -> dict[str, object]:
    return {
        "name": entry.name,
        "cal": entry.calories,
        "loc": entry.location,
        "tag": entry.category_tag,
        "imagePath": entry.image_path,
    }


def serialize_category(stat: CategoryStat) -> dict[str, object]:
    return {
        "name": stat.name,
        "num": stat.sample_count,
        "avgCal": stat.average_calories,
        "imagePath": stat.image_path,
    }
