"""Deity notifications and the listener registry."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Union

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Mapping[str, Any]], Any]


class DeityEventKind(str, Enum):
    MOOD_SHIFT = "mood_shift"
    UTTERANCE = "utterance"
    DEMAND = "demand"
    OMEN = "omen"
    MIRACLE = "miracle"
    WRATH = "wrath"


EVENT_KINDS = tuple(k.value for k in DeityEventKind)


def coerce_event_kind(kind: Union[str, DeityEventKind]) -> DeityEventKind:
    raw = kind.value if isinstance(kind, DeityEventKind) else str(kind)
    try:
        return DeityEventKind(raw)
    except ValueError:
        raise ValueError(f"unknown event: {raw}. Valid: {', '.join(EVENT_KINDS)}") from None


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`ListenerRegistry.subscribe`.

    Calling the handle unsubscribes it. Every registration gets its own token,
    so the same callable registered twice is two independent subscriptions.
    """

    kind: DeityEventKind
    token: int
    _registry: "ListenerRegistry" = field(repr=False)

    @property
    def active(self) -> bool:
        return self._registry.is_active(self)

    def __call__(self) -> bool:
        return self._registry.unsubscribe(self)


class ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: Dict[DeityEventKind, Dict[int, Listener]] = {k: {} for k in DeityEventKind}
        self._tokens = itertools.count(1)

    def subscribe(self, kind: Union[str, DeityEventKind], callback: Listener) -> Subscription:
        event = coerce_event_kind(kind)
        if not callable(callback):
            raise TypeError("listener must be callable")
        token = next(self._tokens)
        self._listeners[event][token] = callback
        return Subscription(kind=event, token=token, _registry=self)

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._listeners[subscription.kind].pop(subscription.token, None) is not None

    def is_active(self, subscription: Subscription) -> bool:
        return subscription.token in self._listeners[subscription.kind]

    def count(self, kind: Union[str, DeityEventKind]) -> int:
        return len(self._listeners[coerce_event_kind(kind)])

    def emit(self, kind: Union[str, DeityEventKind], payload: Mapping[str, Any]) -> int:
        """Deliver ``payload`` to every listener; returns how many succeeded."""
        event = coerce_event_kind(kind)
        delivered = 0
        # Snapshot so callbacks may unsubscribe during delivery.
        callbacks: List[Listener] = list(self._listeners[event].values())
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                LOGGER.warning("listener for %s failed", event.value, exc_info=True)
                continue
            delivered += 1
        return delivered


__all__ = [
    "DeityEventKind",
    "EVENT_KINDS",
    "Listener",
    "ListenerRegistry",
    "Subscription",
    "coerce_event_kind",
]
