"""
Change events: published after every mutation and by best-effort side effects

Listeners are called synchronously, in subscription order.
Delivery is fire-and-forget: a failing listener is logged and skipped, it never fails the action.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional
import sacrud


class EventKind(str, Enum):
    """Kinds of change events."""

    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class ChangeEvent:
    """Change event payload: a serialized record or a message code."""

    resource: str
    kind: EventKind
    payload: Any
    actor: Optional[str] = None

    @property
    def name(self) -> str:
        """e.g. "users.created" """
        return f"{self.resource}.{self.kind.value}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


Listener = Callable[[ChangeEvent], Any]


class _Subscription:
    def __init__(self, listener: Listener, resource: Optional[str], kinds: Optional[frozenset]) -> None:
        self.listener = listener
        self.resource = resource
        self.kinds = kinds

    def matches(self, event: ChangeEvent) -> bool:
        if self.resource is not None and self.resource != event.resource:
            return False
        return self.kinds is None or event.kind in self.kinds


class NotificationEmitter:
    """Publishes change events to the subscribed listeners."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[_Subscription] = []

    def subscribe(self, listener: Listener, resource: Optional[str] = None, kinds: Optional[Iterable[str]] = None) -> Callable[[], None]:
        """
        :param listener: callable receiving a ChangeEvent
        :param resource: only receive events of this resource
        :param kinds: only receive these event kinds
        :return: callable that removes the subscription
        """
        kind_set = frozenset(EventKind(kind) for kind in kinds) if kinds is not None else None
        subscription = _Subscription(listener, resource, kind_set)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def emit(self, resource: str, kind: str, payload: Any, actor: Optional[str] = None) -> ChangeEvent:
        """
        Publish a change event to the matching listeners
        :return: the published event
        """
        event = ChangeEvent(resource=resource, kind=EventKind(kind), payload=payload, actor=actor)
        with self._lock:
            subscriptions = [sub for sub in self._subscriptions if sub.matches(event)]
        sacrud.log.debug(f"Emitting {event.name} to {len(subscriptions)} listener(s)")
        for subscription in subscriptions:
            try:
                subscription.listener(event)
            except Exception as exc:  # pylint: disable=broad-except
                sacrud.log.exception(exc)
                sacrud.log.error(f"Listener {subscription.listener!r} failed for {event.name}")
        return event
