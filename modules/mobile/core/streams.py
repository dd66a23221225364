"""
Live Streams.

Push-based streams with explicit subscription handles. A stream delivers
zero or more values and zero or more errors to each listener; an error does
not end the stream. Listening returns a Subscription whose cancel() stops
delivery immediately.

Usage:
    from modules.mobile.core.streams import StreamController

    controller: StreamController[int] = StreamController()
    subscription = controller.stream.map(lambda n: n * 2).listen(
        on_data=print,
        on_error=lambda e: print("error:", e),
    )
    controller.add(21)          # prints 42
    subscription.cancel()
    controller.add(1)           # nothing
"""

from collections.abc import Callable
from typing import Generic, TypeVar

from modules.mobile.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")

DataHandler = Callable[[T], None]
ErrorHandler = Callable[[Exception], None]


class Subscription:
    """
    Handle for one active listen() call.

    cancel() is immediate, unconditional and idempotent. The optional
    on_cancel hook releases whatever the producer holds for this listener
    (a store watch, a background task, a controller slot).
    """

    def __init__(self, on_cancel: Callable[[], None] | None = None) -> None:
        self._on_cancel = on_cancel
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel()

    def mark_done(self) -> None:
        """
        Mark the subscription finished from the producer side.

        Used when the source ends on its own (a closed store, a lost feed).
        The on_cancel hook is dropped without being called.
        """
        self._active = False
        self._on_cancel = None


def _log_unhandled(error: Exception) -> None:
    logger.warning("Unhandled stream error", extra={"error": str(error)})


class LiveStream(Generic[T]):
    """
    A lazy stream of values.

    Nothing is produced until listen() is called; each listen() opens an
    independent source through the subscribe function given at construction.
    """

    def __init__(
        self,
        subscribe: Callable[[DataHandler[T], ErrorHandler], Subscription],
    ) -> None:
        self._subscribe = subscribe

    def listen(
        self,
        on_data: DataHandler[T],
        on_error: ErrorHandler | None = None,
    ) -> Subscription:
        """
        Start receiving values.

        Args:
            on_data: Called with every value, in delivery order
            on_error: Called with every error; errors are logged when omitted

        Returns:
            Subscription handle owned by the caller
        """
        return self._subscribe(on_data, on_error or _log_unhandled)

    def map(self, transform: Callable[[T], U]) -> "LiveStream[U]":
        """
        Derive a stream that applies transform to every value.

        A transform that raises delivers the exception as a stream error.
        """

        def subscribe(on_data: DataHandler[U], on_error: ErrorHandler) -> Subscription:
            def handle(value: T) -> None:
                try:
                    mapped = transform(value)
                except Exception as e:
                    on_error(e)
                    return
                on_data(mapped)

            return self._subscribe(handle, on_error)

        return LiveStream(subscribe)


class StreamController(Generic[T]):
    """
    Broadcast source feeding a LiveStream.

    Every value or error added is delivered synchronously to each listener
    that is active at that moment.
    """

    def __init__(self) -> None:
        self._listeners: dict[int, tuple[DataHandler[T], ErrorHandler]] = {}
        self._subscriptions: dict[int, Subscription] = {}
        self._next_key = 0
        self._closed = False
        self.stream: LiveStream[T] = LiveStream(self._subscribe)

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _subscribe(self, on_data: DataHandler[T], on_error: ErrorHandler) -> Subscription:
        if self._closed:
            subscription = Subscription()
            subscription.mark_done()
            return subscription
        key = self._next_key
        self._next_key += 1
        self._listeners[key] = (on_data, on_error)
        subscription = Subscription(on_cancel=lambda: self._release(key))
        self._subscriptions[key] = subscription
        return subscription

    def _release(self, key: int) -> None:
        self._listeners.pop(key, None)
        self._subscriptions.pop(key, None)

    def add(self, value: T) -> None:
        """Deliver a value to all active listeners."""
        if self._closed:
            raise RuntimeError("Cannot add to a closed stream")
        for key, (on_data, _) in list(self._listeners.items()):
            if key in self._listeners:
                on_data(value)

    def add_error(self, error: Exception) -> None:
        """Deliver an error to all active listeners without ending the stream."""
        if self._closed:
            raise RuntimeError("Cannot add to a closed stream")
        for key, (_, on_error) in list(self._listeners.items()):
            if key in self._listeners:
                on_error(error)

    def close(self) -> None:
        """Detach all listeners and end their subscriptions. Further add() calls raise RuntimeError."""
        for subscription in self._subscriptions.values():
            subscription.mark_done()
        self._subscriptions.clear()
        self._listeners.clear()
        self._closed = True
