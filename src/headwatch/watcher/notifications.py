"""
Notification bus for head watcher events.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List

from loguru import logger

from ..schemas import HeadChangedEvent

HEAD_CHANGED = "HeadChanged"
UPDATE = "Update"

EVENT_KINDS = (HEAD_CHANGED, UPDATE)


class NotificationBus:
    """
    Delivers HeadChanged and Update notifications to subscribers.

    Subscribers run synchronously, in subscription order. A failing
    subscriber is logged and skipped.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[..., Any]]] = defaultdict(list)
        self.emitted: Dict[str, int] = {kind: 0 for kind in EVENT_KINDS}

    def subscribe(self, kind: str, callback: Callable[..., Any]) -> Callable[[], None]:
        """
        Register a callback for an event kind.

        HeadChanged callbacks receive a HeadChangedEvent; Update callbacks
        receive no arguments.

        Returns:
            Function that removes the subscription
        """
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind '{kind}', expected one of {EVENT_KINDS}")

        self._subscribers[kind].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[kind]:
                self._subscribers[kind].remove(callback)

        return unsubscribe

    def emit_head_changed(self, event: HeadChangedEvent) -> None:
        self._emit(HEAD_CHANGED, event)

    def emit_update(self) -> None:
        self._emit(UPDATE)

    def _emit(self, kind: str, *args: Any) -> None:
        self.emitted[kind] += 1
        for callback in list(self._subscribers[kind]):
            try:
                callback(*args)
            except Exception as e:
                logger.opt(exception=e).warning(f"{kind} subscriber {callback!r} failed")
