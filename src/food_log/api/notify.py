"""Server-sent-event notifications and live client count."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

if TYPE_CHECKING:
    from food_log.containers import AppContainer
    from food_log.services.notifications import SubscriberRegistry

router = APIRouter(prefix="/api", tags=["notify"])


async def event_stream(registry: SubscriberRegistry) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until its channel closes.

    The subscriber is unregistered when the stream ends, is closed by the
    client, or is cancelled on disconnect.
    """
    with registry.subscription() as subscriber:
        while True:
            event = await subscriber.next_event()
            if event is None:
                break
            yield event.frame()


@router.get("/notify")
async def notify(request: Request) -> StreamingResponse:
    """Open a push channel for live updates."""
    container: AppContainer = request.app.state.container
    return StreamingResponse(
        event_stream(container.registry),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/userCount")
async def user_count(request: Request) -> dict[str, int]:
    """Return the number of open push channels."""
    container: AppContainer = request.app.state.container
    return {"count": container.registry.count()}
