#!/usr/bin/env python3
"""Tests for the change bus and live queries."""

from money_manager.core.events import ACCOUNTS, CATEGORIES, TRANSACTIONS, ChangeBus, LiveQuery


class TestChangeBus:
    """Test publish/subscribe."""

    def test_publish_reaches_subscribers(self):
        bus = ChangeBus()
        seen = []
        bus.subscribe(lambda event: seen.append(event.tables))

        event = bus.publish([ACCOUNTS, TRANSACTIONS])

        assert seen == [frozenset({ACCOUNTS, TRANSACTIONS})]
        assert event.tables == frozenset({ACCOUNTS, TRANSACTIONS})

    def test_empty_publish_is_silent(self):
        bus = ChangeBus()
        seen = []
        bus.subscribe(seen.append)
        assert bus.publish([]) is None
        assert seen == []

    def test_unsubscribe(self):
        bus = ChangeBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)
        unsubscribe()
        bus.publish([ACCOUNTS])
        assert seen == []

    def test_failing_handler_does_not_block_others(self, caplog):
        bus = ChangeBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.publish([CATEGORIES])

        assert len(seen) == 1
        assert "failed" in caplog.text


class TestLiveQuery:
    """Test query re-execution."""

    def test_runs_immediately_and_on_relevant_changes(self):
        bus = ChangeBus()
        calls = []

        def query():
            calls.append(1)
            return len(calls)

        live = LiveQuery(bus, query, tables={TRANSACTIONS})
        assert live.value == 1

        bus.publish([CATEGORIES])
        assert live.value == 1

        bus.publish([ACCOUNTS, TRANSACTIONS])
        assert live.value == 2

    def test_listeners_and_close(self):
        bus = ChangeBus()
        counter = iter(range(100))
        live = LiveQuery(bus, lambda: next(counter))
        received = []
        live.add_listener(received.append)

        bus.publish([ACCOUNTS])
        live.close()
        bus.publish([ACCOUNTS])

        assert received == [1]
        assert live.closed
