import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

ConfigListener = Callable[[], Optional[Awaitable[None]]]


class ConfigEvents:
    """Listeners interested in server config changes, owned by a single service."""

    def __init__(self) -> None:
        self._listeners: List[ConfigListener] = []

    def add_listener(self, callback: ConfigListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            self.remove_listener(callback)

        return remove

    def remove_listener(self, callback: ConfigListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def __len__(self) -> int:
        return len(self._listeners)

    async def notify_change(self) -> None:
        """Call every listener; the first listener error is re-raised after all have run."""
        first_error: Optional[Exception] = None
        # Snapshot so listeners may unsubscribe while being notified.
        for callback in list(self._listeners):
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                logger.exception("Config listener %r failed", callback)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
