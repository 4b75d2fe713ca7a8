"""Minimal synchronous observer registry used by reference frames, scene
nodes and worlds to notify interested parties about changes.
"""

from __future__ import annotations

from contextlib import contextmanager
from itertools import count
from typing import Any, Callable, Iterator, Optional

__all__ = ("Signal", "SubscriptionToken")


class SubscriptionToken:
    """Opaque token returned by `Signal.subscribe()`; pass it back to
    `Signal.unsubscribe()` to cancel the subscription.
    """

    __slots__ = ("_id", "_signal_name")

    def __init__(self, id: int, signal_name: str):
        self._id = id
        self._signal_name = signal_name

    def __repr__(self) -> str:
        return f"<SubscriptionToken #{self._id} on {self._signal_name}>"


class Signal:
    """Signal object that dispatches notifications synchronously to the
    handlers subscribed to it.

    Handlers are called in the order of subscription, before `emit()`
    returns. The list of handlers is copied before dispatching, so handlers
    may subscribe or unsubscribe while a notification is being delivered;
    such changes take effect from the next notification.
    """

    _handlers: dict[SubscriptionToken, Callable[..., Any]]

    def __init__(self, name: Optional[str] = None):
        """Constructor.

        Parameters:
            name: name of the signal, used in log messages and tokens
        """
        self.name = name or "signal"
        self._handlers = {}
        self._ids = count(1)

    def emit(self, *args, **kwds) -> None:
        """Calls all the handlers subscribed to this signal with the given
        arguments.
        """
        for handler in list(self._handlers.values()):
            handler(*args, **kwds)

    def subscribe(self, handler: Callable[..., Any]) -> SubscriptionToken:
        """Subscribes the given handler to this signal.

        Returns:
            a token that can be used to cancel the subscription
        """
        if not callable(handler):
            raise TypeError(f"expected a callable, got {handler!r}")

        token = SubscriptionToken(next(self._ids), self.name)
        self._handlers[token] = handler
        return token

    @contextmanager
    def subscribed(self, handler: Callable[..., Any]) -> Iterator[SubscriptionToken]:
        """Context manager that subscribes the given handler to the signal
        when entering the context and unsubscribes it when exiting.
        """
        token = self.subscribe(handler)
        try:
            yield token
        finally:
            self.unsubscribe(token)

    def unsubscribe(self, token: Optional[SubscriptionToken]) -> bool:
        """Cancels the subscription associated to the given token.

        Returns:
            whether the token belonged to an active subscription
        """
        if token is None:
            return False
        return self._handlers.pop(token, None) is not None

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"<Signal {self.name!r} with {len(self)} subscriber(s)>"
