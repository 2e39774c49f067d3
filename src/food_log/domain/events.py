"""Push events delivered to live subscribers."""

from dataclasses import dataclass
from enum import Enum


class EventKind(str, Enum):
    """Kinds of push events, valued by their wire token."""

    CONNECTED = "connected"
    DATA_CHANGED = "fetch"
    CLIENT_COUNT_CHANGED = "clientUpdate"


@dataclass(frozen=True)
class PushEvent:
    """An event queued for one subscriber."""

    kind: EventKind
    client_count: int | None = None

    def frame(self) -> str:
        """Return the server-sent-event frame for this event."""
        return f"data: {self.kind.value}\n\n"
