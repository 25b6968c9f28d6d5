"""
test_events.py

Tests for contract lifecycle events.
"""

from datetime import datetime, timezone

import pytest
from pagecontract import (
    Capability,
    ChangeType,
    Contract,
    ContractDiscoveredEvent,
    ContractExecutedEvent,
    ContractImmutabilityError,
    ContractLearningUpdatedEvent,
    ContractUpdatedEvent,
    ContractValidatedEvent,
    DiscoveryMethod,
    LearningType,
    ValidationResult,
    ValidationType,
)


WHEN = datetime(2025, 5, 5, 10, 0, tzinfo=timezone.utc)


def make_contract(**capabilities):
    return Contract.create("c1", "1.0", "example.com", "Example", capabilities)


def make_capability(name, description="Does something"):
    return Capability(
        id=f"cap-{name}",
        name=name,
        type="action",
        description=description,
        selector=f"#{name}",
        created_at=WHEN,
        updated_at=WHEN,
    )


class TestContractDiscoveredEvent:
    """Tests for ContractDiscoveredEvent."""

    def test_domain_defaults_to_contract_domain(self):
        """Test the domain is taken from the contract."""
        contract = make_contract()
        event = ContractDiscoveredEvent(
            contract=contract,
            discovery_method=DiscoveryMethod.AI_ASSISTED,
            confidence=0.8,
        )
        assert event.domain == "example.com"
        assert event.discovery_method == "ai-assisted"
        assert event.contract is contract
        assert event.timestamp is not None

    def test_to_dict_encodes_contract(self):
        """Test to_dict() encodes the contract and timestamp."""
        contract = make_contract()
        event = ContractDiscoveredEvent(
            contract=contract,
            discovery_method="manual",
            confidence=1.0,
            timestamp=WHEN,
        )
        data = event.to_dict()
        assert data["type"] == "contract.discovered"
        assert data["payload"]["contract"] == contract.to_dict()
        assert data["payload"]["timestamp"] == "2025-05-05T10:00:00.000Z"

    def test_immutable(self):
        """Test events reject assignment."""
        event = ContractDiscoveredEvent(
            contract=make_contract(),
            discovery_method="manual",
            confidence=1.0,
        )
        with pytest.raises(ContractImmutabilityError):
            event._payload = {}

    def test_payload_is_a_copy(self):
        """Test mutating the payload copy leaves the event alone."""
        event = ContractDiscoveredEvent(
            contract=make_contract(),
            discovery_method="manual",
            confidence=1.0,
        )
        event.payload["confidence"] = 0.0
        assert event.confidence == 1.0


class TestContractValidatedEvent:
    """Tests for ContractValidatedEvent."""

    def test_for_valid_result(self):
        """Test the score drops 0.1 per warning."""
        contract = make_contract(a=make_capability("a"))
        result = ValidationResult.from_messages(warnings=["w1", "w2"])
        event = ContractValidatedEvent.for_result(contract, result)

        assert event.is_valid()
        assert event.contract_id == "c1"
        assert event.validation_type == "structure"
        assert event.validation_result["score"] == 0.8
        assert event.timestamp == result.timestamp

    def test_for_invalid_result(self):
        """Test an invalid report scores zero."""
        contract = make_contract()
        result = ValidationResult.from_messages(["broken"])
        event = ContractValidatedEvent.for_result(contract, result, ValidationType.EXECUTION)

        assert not event.is_valid()
        assert event.validation_type == "execution"
        assert event.validation_result["score"] == 0.0
        assert event.validation_result["errors"] == ["broken"]

    def test_score_never_negative(self):
        """Test many warnings floor the score at zero."""
        result = ValidationResult.from_messages(warnings=["w"] * 15)
        event = ContractValidatedEvent.for_result(make_contract(), result)
        assert event.validation_result["score"] == 0.0


class TestContractExecutedEvent:
    """Tests for ContractExecutedEvent."""

    def test_accessors(self):
        """Test accessors read the execution result."""
        event = ContractExecutedEvent(
            contract_id="c1",
            domain="example.com",
            capability_name="login",
            parameters={"user": "alice"},
            result={"success": True, "execution_time": 250},
        )
        assert event.is_successful()
        assert event.execution_time == 250
        assert event.capability_name == "login"
        assert event.parameters == {"user": "alice"}

    def test_failed_execution(self):
        """Test a failed execution without timing."""
        event = ContractExecutedEvent(
            contract_id="c1",
            domain="example.com",
            capability_name="login",
            parameters={},
            result={"success": False, "error": "timeout"},
        )
        assert not event.is_successful()
        assert event.execution_time is None


class TestContractUpdatedEvent:
    """Tests for ContractUpdatedEvent."""

    def test_between_describes_changes(self):
        """Test added, modified, removed and metadata changes are listed."""
        previous = make_contract(a=make_capability("a"), b=make_capability("b"))
        current = (
            previous
            .with_capability("a", make_capability("a", description="Changed"))
            .without_capability("b")
            .with_capability("c", make_capability("c"))
            .with_metadata({"author": "bot"})
        )
        event = ContractUpdatedEvent.between(previous, current, updated_by="learner")

        assert event.changes == [
            {"type": "capability_modified", "details": {"capability": "a"}},
            {"type": "capability_added", "details": {"capability": "c"}},
            {"type": "capability_removed", "details": {"capability": "b"}},
            {"type": "metadata_updated", "details": {}},
        ]
        assert event.updated_by == "learner"
        assert event.timestamp == current.updated_at

    def test_no_changes(self):
        """Test identical contracts produce no changes."""
        contract = make_contract(a=make_capability("a"))
        event = ContractUpdatedEvent.between(contract, contract, updated_by="me")
        assert event.changes == []

    def test_explicit_changes(self):
        """Test change types given as enums are stored as values."""
        event = ContractUpdatedEvent(
            contract_id="c1",
            domain="example.com",
            previous_version="1.0",
            new_version="1.1",
            changes=[{"type": ChangeType.CAPABILITY_ADDED, "details": {"capability": "x"}}],
            updated_by="me",
        )
        assert event.new_version == "1.1"
        assert event.changes[0]["type"] == "capability_added"


class TestContractLearningUpdatedEvent:
    """Tests for ContractLearningUpdatedEvent."""

    def test_accessors(self):
        """Test accessors read the improvement."""
        event = ContractLearningUpdatedEvent(
            contract_id="c1",
            domain="example.com",
            learning_type=LearningType.SELECTOR_IMPROVEMENT,
            improvement={"confidence": 0.7, "applied_automatically": True},
        )
        assert event.learning_type == "selector_improvement"
        assert event.confidence == 0.7
        assert event.was_applied_automatically()

    def test_equality(self):
        """Test events with equal payloads are equal."""
        kwargs = dict(
            contract_id="c1",
            domain="example.com",
            learning_type="success_pattern",
            improvement={},
            timestamp=WHEN,
        )
        assert ContractLearningUpdatedEvent(**kwargs) == ContractLearningUpdatedEvent(**kwargs)
