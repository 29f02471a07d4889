"""
EventBus — ordered, in-process delivery of identity events.
"""
import logging

from .models import AuthEvent
from .ports import Disposer, EventHandler

logger = logging.getLogger("passwordlock.auth")


class EventBus:
    """Synchronous fan-out of ``AuthEvent`` objects.

    Events are delivered in emission order to the handlers registered at
    emission time. A handler that raises is logged and does not stop
    delivery to the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def on_event(self, handler: EventHandler) -> Disposer:
        self._handlers.append(handler)

        def dispose() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass  # already disposed

        return dispose

    def emit(self, event: AuthEvent) -> None:
        logger.debug(
            "Auth event %s (handlers=%d)", event.type.value, len(self._handlers)
        )
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as err:  # pylint: disable=W0718
                logger.exception(
                    "Auth event handler failed on %s: %s", event.type.value, err
                )

    def __len__(self) -> int:
        return len(self._handlers)
