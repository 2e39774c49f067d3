"""Domain errors for the food log."""


class FoodLogError(Exception):
    """Base error for food log operations."""


class EntryValidationError(FoodLogError):
    """Raised when a submission is missing or has malformed fields."""


class UnknownCategoryError(FoodLogError):
    """Raised when an entry references a category that was never seeded."""

    def __init__(self, category_tag: str) -> None:
        super().__init__(f"Unknown food category: {category_tag!r}")
        self.category_tag = category_tag


class StorageFaultError(FoodLogError):
    """Raised when a collection file cannot be read or rewritten."""


class ChannelClosedError(FoodLogError):
    """Raised when an event is delivered to a subscriber whose channel closed."""
