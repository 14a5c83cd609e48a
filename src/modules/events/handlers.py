"""In-process fan-out from outbox event types to their handlers."""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# A handler writes through the worker's session; its writes commit together
# with the event being marked COMPLETED.
Handler = Callable[[Session, dict], None]


def handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", type(handler).__name__)


class EventHandlerRegistry:
    """Process-wide map of event type to handlers, in registration order."""

    _handlers: dict[str, list[Handler]] = {}

    @classmethod
    def register(cls, event_type: str, handler: Handler) -> None:
        handlers = cls._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug("%s handles %s", handler_name(handler), event_type)

    @classmethod
    def get_handlers(cls, event_type: str) -> list[Handler]:
        return list(cls._handlers.get(event_type, ()))

    @classmethod
    def dispatch(cls, event_type: str, session: Session, payload: dict) -> list[dict]:
        """Run every handler for ``event_type``; one failing does not stop the rest.

        Returns one ``{"handler", "status"[, "error"]}`` entry per handler.
        """
        outcomes = []
        for handler in cls.get_handlers(event_type):
            name = handler_name(handler)
            try:
                handler(session, payload)
            except Exception as exc:
                logger.exception("%s failed on %s", name, event_type)
                outcomes.append({"handler": name, "status": "error", "error": str(exc)})
            else:
                outcomes.append({"handler": name, "status": "ok"})
        return outcomes

    @classmethod
    def clear(cls) -> None:
        cls._handlers.clear()
