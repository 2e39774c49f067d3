"""Command-line entrypoint that serves the API with uvicorn."""

import socket
from collections.abc import Awaitable, Callable

import uvicorn

from food_log.api.app import create_app
from food_log.config import Settings
from food_log.containers import build_container


class PushAwareServer(uvicorn.Server):
    """Uvicorn server that ends push streams as soon as shutdown starts.

    Uvicorn waits for open connections to finish before the lifespan
    shutdown runs, and a push stream never finishes on its own.
    """

    def __init__(
        self, config: uvicorn.Config, on_shutdown: Callable[[], Awaitable[None]]
    ) -> None:
        super().__init__(config)
        self.on_shutdown = on_shutdown

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        await self.on_shutdown()
        await super().shutdown(sockets=sockets)


def main() -> None:
    """Load settings, build the app and serve it."""
    settings = Settings()
    container = build_container(settings)
    config = uvicorn.Config(
        create_app(container),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    PushAwareServer(config, on_shutdown=container.close_resources).run()


if __name__ == "__main__":
    main()
