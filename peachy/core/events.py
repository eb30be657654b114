import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineEvent:
    name: str
    user_id: str | None
    data: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[EngineEvent], None]


class EventHub:
    """Fan-out of engine events to outside observers (notifications etc).

    Events are published after the owning transaction commits. A failing
    listener is logged and skipped; it never changes the engine's result.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, name: str, user_id: str | None = None, **data: Any) -> None:
        event = EngineEvent(name=name, user_id=user_id, data=data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.error(f"Event listener failed for {name}", exc_info=True)
