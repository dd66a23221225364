"""
Unit Tests for Observable.
"""

from unittest.mock import MagicMock

import pytest

from modules.mobile.core.observable import Observable


class TestListeners:
    """Tests for listener registration and notification."""

    def test_listeners_called_in_registration_order(self):
        observable = Observable()
        calls = []
        observable.add_listener(lambda: calls.append("first"))
        observable.add_listener(lambda: calls.append("second"))

        observable.notify_listeners()

        assert calls == ["first", "second"]

    def test_remover_unregisters_listener(self):
        observable = Observable()
        listener = MagicMock()
        remove = observable.add_listener(listener)

        remove()
        observable.notify_listeners()

        listener.assert_not_called()
        assert not observable.has_listeners

    def test_remove_unknown_listener_is_ignored(self):
        Observable().remove_listener(lambda: None)

    def test_listener_may_remove_itself_while_notified(self):
        observable = Observable()
        other = MagicMock()
        remove_holder = {}

        def once():
            remove_holder["remove"]()

        remove_holder["remove"] = observable.add_listener(once)
        observable.add_listener(other)

        observable.notify_listeners()
        observable.notify_listeners()

        assert other.call_count == 2

    def test_raising_listener_does_not_stop_others(self):
        observable = Observable()
        after = MagicMock()
        observable.add_listener(MagicMock(side_effect=RuntimeError("boom")))
        observable.add_listener(after)

        observable.notify_listeners()

        after.assert_called_once()


class TestDispose:
    """Tests for dispose()."""

    def test_no_notifications_after_dispose(self):
        observable = Observable()
        listener = MagicMock()
        observable.add_listener(listener)

        observable.dispose()
        observable.notify_listeners()

        listener.assert_not_called()
        assert observable.is_disposed
        assert not observable.has_listeners

    def test_add_listener_after_dispose_raises(self):
        observable = Observable()
        observable.dispose()

        with pytest.raises(RuntimeError, match="after being disposed"):
            observable.add_listener(lambda: None)
