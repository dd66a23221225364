"""
Observable State.

Explicit publish/subscribe base for state holders. Collaborators register
zero-argument callbacks and read the holder's public fields when called.

Usage:
    from modules.mobile.core.observable import Observable

    class CounterProvider(Observable):
        def __init__(self) -> None:
            super().__init__()
            self.count = 0

        def increment(self) -> None:
            self.count += 1
            self.notify_listeners()

    provider = CounterProvider()
    remove = provider.add_listener(lambda: print(provider.count))
    provider.increment()
    remove()
"""

from collections.abc import Callable

from modules.mobile.core.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[], None]


class Observable:
    """
    Base class holding a list of change listeners.

    Notification is synchronous and follows registration order. A listener
    that raises is logged and does not prevent the remaining listeners from
    being called. After dispose() no listener is ever called again.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._disposed = False

    @property
    def has_listeners(self) -> bool:
        """Whether any listener is currently registered."""
        return bool(self._listeners)

    @property
    def is_disposed(self) -> bool:
        """Whether dispose() has been called."""
        return self._disposed

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Callback invoked after every state change

        Returns:
            A callable that removes the listener again

        Raises:
            RuntimeError: If the observable has been disposed
        """
        if self._disposed:
            raise RuntimeError(f"{self.__class__.__name__} was used after being disposed")
        self._listeners.append(listener)

        def remove() -> None:
            self.remove_listener(listener)

        return remove

    def remove_listener(self, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def notify_listeners(self) -> None:
        """Call every registered listener. No-op once disposed."""
        if self._disposed:
            return
        # Snapshot so listeners may unregister themselves while being notified
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception(
                    "Listener raised during notification",
                    extra={"observable": self.__class__.__name__},
                )

    def dispose(self) -> None:
        """Drop all listeners and stop notifying."""
        self._listeners.clear()
        self._disposed = True
