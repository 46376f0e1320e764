#!/usr/bin/env python3
"""
Unit Tests for EventDispatcher

Test Coverage:
- Registration order determines notification order
- Duplicate registrations are invoked once per registration
- Listener failures are isolated and counted
- Events without listeners

Author: Graph NLP Platform
Date: 2026
"""

from unittest.mock import Mock

import pytest

from domain.events import NLPEvents
from infrastructure.events.dispatcher import EventDispatcher
from infrastructure.monitoring.metrics import get_sample_value

pytestmark = pytest.mark.unit

KIND = NLPEvents.POST_TEXT_ANNOTATION


def failures() -> float:
    return get_sample_value("nlp_event_listener_failure_total", {"event_kind": KIND.value}) or 0.0


class TestEventDispatcher:

    def test_listeners_called_in_registration_order(self):
        dispatcher = EventDispatcher()
        calls = []
        for label in ("first", "second", "third"):
            dispatcher.register(KIND, lambda payload, label=label: calls.append((label, payload)))

        dispatcher.notify(KIND, "payload")

        assert calls == [("first", "payload"), ("second", "payload"), ("third", "payload")]

    def test_failing_listener_is_isolated(self):
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.register(KIND, lambda payload: calls.append("first"))
        dispatcher.register(KIND, Mock(side_effect=RuntimeError("listener bug")))
        dispatcher.register(KIND, lambda payload: calls.append("third"))
        before = failures()

        dispatcher.notify(KIND, object())

        assert calls == ["first", "third"]
        assert failures() == before + 1

    def test_duplicate_registration_is_not_deduplicated(self):
        dispatcher = EventDispatcher()
        listener = Mock()
        dispatcher.register(KIND, listener)
        dispatcher.register(KIND, listener)

        dispatcher.notify(KIND, "payload")

        assert listener.call_count == 2
        assert len(dispatcher.listeners(KIND)) == 2

    def test_notify_without_listeners(self):
        dispatcher = EventDispatcher()
        dispatcher.notify("unknown_kind", {"any": "payload"})
        assert dispatcher.listeners("unknown_kind") == ()

    def test_listeners_isolated_per_kind(self):
        dispatcher = EventDispatcher()
        annotated, other = Mock(), Mock()
        dispatcher.register(KIND, annotated)
        dispatcher.register("other", other)

        dispatcher.notify(KIND, 1)

        annotated.assert_called_once_with(1)
        other.assert_not_called()

    def test_register_rejects_non_callable(self):
        dispatcher = EventDispatcher()
        with pytest.raises(TypeError):
            dispatcher.register(KIND, "not callable")

    def test_publish_is_counted(self):
        dispatcher = EventDispatcher()
        labels = {"event_kind": KIND.value}
        before = get_sample_value("nlp_events_published_total", labels) or 0.0
        dispatcher.notify(KIND, None)
        assert get_sample_value("nlp_events_published_total", labels) == before + 1
