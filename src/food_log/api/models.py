"""Request models for the food log API."""

from pydantic import BaseModel, ConfigDict, Field


class SelectedItemsRequest(BaseModel):
    """Explicit selections of entries (by image) and categories (by name)."""

    model_config = ConfigDict(populate_by_name=True)

    image_paths: list[str] = Field(default_factory=list, alias="selectedDataSet")
    category_names: list[str] = Field(default_factory=list, alias="selectedTypeSet")


class UserPassword(BaseModel):
    """Credential pair passed as JSON in the ``userPassword`` query parameter."""

    name: str = ""
    password: str = ""
