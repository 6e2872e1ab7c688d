"""Window events and a lightweight signal bus."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Hashable

from lazyjj_panel.host.handles import WindowId

EventHandler = Callable[[object], None]

WIN_ENTER = "WinEnter"
WIN_LEAVE = "WinLeave"


@dataclass(frozen=True)
class WindowEvent:
    """Focus moved into or out of a window."""

    window: WindowId


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``EventHub.subscribe``."""

    hub: "EventHub"
    key: Hashable
    handler: EventHandler
    once: bool = False

    def cancel(self) -> None:
        self.hub.unsubscribe(self)


class EventHub:
    """Simple in-process pub/sub keyed by event name and optional scope.

    A ``once`` subscription is removed before its handler runs, so it fires
    at most one time even when a handler publishes the same event again.
    Subscriptions cancelled during a publish are skipped.
    """

    def __init__(self) -> None:
        self._subs: dict[Hashable, list[Subscription]] = defaultdict(list)

    def subscribe(
        self,
        event_name: str,
        handler: EventHandler,
        *,
        scope: Hashable = None,
        once: bool = False,
    ) -> Subscription:
        sub = Subscription(self, (event_name, scope), handler, once)
        self._subs[sub.key].append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.key)
        if subs and sub in subs:
            subs.remove(sub)
            if not subs:
                del self._subs[sub.key]

    def publish(self, event_name: str, payload: object, *, scope: Hashable = None) -> None:
        for key in {(event_name, None), (event_name, scope)}:
            for sub in list(self._subs.get(key, [])):
                if sub not in self._subs.get(key, ()):
                    continue
                if sub.once:
                    self.unsubscribe(sub)
                sub.handler(payload)

    def count(self, event_name: str, *, scope: Hashable = None) -> int:
        return len(self._subs.get((event_name, scope), []))
