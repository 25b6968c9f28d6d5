"""
test_listeners.py

Tests for ListenerTable registration and dispatch.
"""

import pytest
from pagecontract import (
    ContractExecutedEvent,
    ContractLearningUpdatedEvent,
    Event,
    ListenerTable,
)


def executed():
    return ContractExecutedEvent(
        contract_id="c1",
        domain="example.com",
        capability_name="login",
        parameters={},
        result={"success": True},
    )


class TestListenerTable:
    """Tests for ListenerTable."""

    def test_dispatch_calls_handlers_in_registration_order(self):
        """Test handlers run in the order they were registered."""
        table = ListenerTable()
        calls = []
        table.register(ContractExecutedEvent, lambda e: calls.append("first"))
        table.register(ContractExecutedEvent, lambda e: calls.append("second"))

        table.dispatch(executed())
        assert calls == ["first", "second"]

    def test_dispatch_returns_results(self):
        """Test dispatch() collects handler results."""
        table = ListenerTable()
        table.register(ContractExecutedEvent, lambda e: e.capability_name)
        assert table.dispatch(executed()) == ["login"]

    def test_base_class_handlers_run_after_specific_ones(self):
        """Test base-class handlers also receive subclass events."""
        table = ListenerTable()
        table.register(Event, lambda e: "any")
        table.register(ContractExecutedEvent, lambda e: "executed")
        assert table.dispatch(executed()) == ["executed", "any"]

    def test_unrelated_handlers_are_not_called(self):
        """Test handlers for other event types are skipped."""
        table = ListenerTable()
        table.register(ContractLearningUpdatedEvent, lambda e: "learning")
        assert table.dispatch(executed()) == []

    def test_register_rejects_non_event_types(self):
        """Test only Event subclasses can be registered."""
        table = ListenerTable()
        with pytest.raises(TypeError):
            table.register(dict, lambda e: None)
        with pytest.raises(TypeError):
            table.register("contract.executed", lambda e: None)

    def test_register_rejects_non_callables(self):
        """Test handlers must be callable."""
        with pytest.raises(TypeError):
            ListenerTable().register(ContractExecutedEvent, "handler")

    def test_introspection(self):
        """Test len(), event_types() and handlers_for()."""
        table = ListenerTable()
        table.register(ContractExecutedEvent, print)
        table.register(ContractExecutedEvent, repr)
        table.register(Event, repr)
        assert len(table) == 3
        assert table.event_types() == [ContractExecutedEvent, Event]
        assert table.handlers_for(ContractExecutedEvent) == [print, repr, repr]
