"""
events.py

Domain events for the contract lifecycle.

An event records something that already happened: a contract was
discovered, validated, executed, updated, or improved by learning. Events
are immutable; routing them to handlers is done through a ListenerTable.
"""

from dataclasses import is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pagecontract.contract import Contract
from pagecontract.errors import ContractImmutabilityError
from pagecontract.serialization import format_timestamp, now_utc
from pagecontract.validation import ValidationResult


# =============================================================================
# Vocabulary
# =============================================================================

class DiscoveryMethod(Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    AI_ASSISTED = "ai-assisted"


class ValidationType(Enum):
    STRUCTURE = "structure"
    EXECUTION = "execution"
    CROSS_BROWSER = "cross-browser"
    ACCESSIBILITY = "accessibility"


class ChangeType(Enum):
    CAPABILITY_ADDED = "capability_added"
    CAPABILITY_REMOVED = "capability_removed"
    CAPABILITY_MODIFIED = "capability_modified"
    METADATA_UPDATED = "metadata_updated"


class LearningType(Enum):
    SUCCESS_PATTERN = "success_pattern"
    FAILURE_PATTERN = "failure_pattern"
    PERFORMANCE_OPTIMIZATION = "performance_optimization"
    SELECTOR_IMPROVEMENT = "selector_improvement"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _to_wire(value: Any) -> Any:
    """Encode payload values into plain JSON-compatible structures."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Contract) or is_dataclass(value):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {k: _to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(v) for v in value]
    return value


# =============================================================================
# Event Base
# =============================================================================

class Event:
    """
    Base class for domain events.

    Attributes:
        event_type: Stable name of the event kind
        payload: What happened (returned as a shallow copy)
    """

    event_type = "event"

    __slots__ = ('_payload', '_frozen')

    def __init__(self, payload: Mapping[str, Any]):
        object.__setattr__(self, '_payload', dict(payload))
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError(type(self).__name__, f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError(type(self).__name__, f"delete attribute '{name}'")
        object.__delattr__(self, name)

    @property
    def payload(self) -> Dict[str, Any]:
        return dict(self._payload)

    @property
    def timestamp(self) -> Optional[datetime]:
        return self._payload.get("timestamp")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return type(self) is type(other) and self._payload == other._payload

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.event_type, "payload": _to_wire(self._payload)}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sorted(self._payload)})"


# =============================================================================
# Contract Events
# =============================================================================

class ContractDiscoveredEvent(Event):
    """A new automation contract was found for a domain."""

    event_type = "contract.discovered"

    __slots__ = ()

    def __init__(
        self,
        *,
        contract: Contract,
        discovery_method: Any,
        confidence: float,
        domain: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        discovery_context: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__({
            "contract": contract,
            "domain": domain if domain is not None else contract.domain,
            "discovery_method": _enum_value(discovery_method),
            "confidence": confidence,
            "timestamp": timestamp or now_utc(),
            "discovery_context": dict(discovery_context) if discovery_context else None,
        })

    @property
    def contract(self) -> Contract:
        return self._payload["contract"]

    @property
    def domain(self) -> str:
        return self._payload["domain"]

    @property
    def discovery_method(self) -> str:
        return self._payload["discovery_method"]

    @property
    def confidence(self) -> float:
        return self._payload["confidence"]


class ContractValidatedEvent(Event):
    """A contract was checked; carries the summarized outcome."""

    event_type = "contract.validated"

    __slots__ = ()

    def __init__(
        self,
        *,
        contract_id: str,
        domain: str,
        validation_result: Mapping[str, Any],
        validation_type: Any = ValidationType.STRUCTURE,
        timestamp: Optional[datetime] = None,
        validation_context: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__({
            "contract_id": contract_id,
            "domain": domain,
            "validation_result": dict(validation_result),
            "validation_type": _enum_value(validation_type),
            "timestamp": timestamp or now_utc(),
            "validation_context": dict(validation_context) if validation_context else None,
        })

    @classmethod
    def for_result(
        cls,
        contract: Contract,
        result: ValidationResult,
        validation_type: Any = ValidationType.STRUCTURE,
    ) -> "ContractValidatedEvent":
        """
        Summarize a report for a contract.

        The score is 0.0 for an invalid contract and otherwise loses 0.1 per
        warning, never dropping below 0.0.
        """
        score = max(0.0, 1.0 - 0.1 * len(result.warnings)) if result.valid else 0.0
        return cls(
            contract_id=contract.id,
            domain=contract.domain,
            validation_result={
                "valid": result.valid,
                "errors": list(result.errors),
                "warnings": list(result.warnings),
                "score": round(score, 4),
            },
            validation_type=validation_type,
            timestamp=result.timestamp,
        )

    @property
    def contract_id(self) -> str:
        return self._payload["contract_id"]

    @property
    def validation_result(self) -> Dict[str, Any]:
        return dict(self._payload["validation_result"])

    @property
    def validation_type(self) -> str:
        return self._payload["validation_type"]

    def is_valid(self) -> bool:
        return bool(self._payload["validation_result"].get("valid"))


class ContractExecutedEvent(Event):
    """A capability of a contract was run by an execution engine."""

    event_type = "contract.executed"

    __slots__ = ()

    def __init__(
        self,
        *,
        contract_id: str,
        domain: str,
        capability_name: str,
        parameters: Mapping[str, Any],
        result: Mapping[str, Any],
        timestamp: Optional[datetime] = None,
        execution_context: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__({
            "contract_id": contract_id,
            "domain": domain,
            "capability_name": capability_name,
            "parameters": dict(parameters),
            "result": dict(result),
            "timestamp": timestamp or now_utc(),
            "execution_context": dict(execution_context) if execution_context else None,
        })

    @property
    def contract_id(self) -> str:
        return self._payload["contract_id"]

    @property
    def capability_name(self) -> str:
        return self._payload["capability_name"]

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self._payload["parameters"])

    @property
    def result(self) -> Dict[str, Any]:
        return dict(self._payload["result"])

    @property
    def execution_time(self) -> Optional[float]:
        return self._payload["result"].get("execution_time")

    def is_successful(self) -> bool:
        return bool(self._payload["result"].get("success"))


class ContractUpdatedEvent(Event):
    """A contract moved from one version to another."""

    event_type = "contract.updated"

    __slots__ = ()

    def __init__(
        self,
        *,
        contract_id: str,
        domain: str,
        previous_version: str,
        new_version: str,
        changes: List[Mapping[str, Any]],
        updated_by: str,
        timestamp: Optional[datetime] = None,
    ):
        super().__init__({
            "contract_id": contract_id,
            "domain": domain,
            "previous_version": previous_version,
            "new_version": new_version,
            "changes": tuple(
                {"type": _enum_value(c["type"]), "details": dict(c.get("details") or {})}
                for c in changes
            ),
            "updated_by": updated_by,
            "timestamp": timestamp or now_utc(),
        })

    @classmethod
    def between(cls, previous: Contract, current: Contract, *, updated_by: str) -> "ContractUpdatedEvent":
        """Describe the capability and metadata changes from previous to current."""
        changes: List[Dict[str, Any]] = []
        before = previous.capabilities
        after = current.capabilities

        for name in after:
            if name not in before:
                changes.append({"type": ChangeType.CAPABILITY_ADDED, "details": {"capability": name}})
            elif after[name] != before[name]:
                changes.append({"type": ChangeType.CAPABILITY_MODIFIED, "details": {"capability": name}})
        for name in before:
            if name not in after:
                changes.append({"type": ChangeType.CAPABILITY_REMOVED, "details": {"capability": name}})
        if previous.metadata != current.metadata:
            changes.append({"type": ChangeType.METADATA_UPDATED, "details": {}})

        return cls(
            contract_id=current.id,
            domain=current.domain,
            previous_version=previous.version,
            new_version=current.version,
            changes=changes,
            updated_by=updated_by,
            timestamp=current.updated_at,
        )

    @property
    def contract_id(self) -> str:
        return self._payload["contract_id"]

    @property
    def previous_version(self) -> str:
        return self._payload["previous_version"]

    @property
    def new_version(self) -> str:
        return self._payload["new_version"]

    @property
    def changes(self) -> List[Dict[str, Any]]:
        return [dict(c) for c in self._payload["changes"]]

    @property
    def updated_by(self) -> str:
        return self._payload["updated_by"]


class ContractLearningUpdatedEvent(Event):
    """An improvement to a contract was learned from execution history."""

    event_type = "contract.learning_updated"

    __slots__ = ()

    def __init__(
        self,
        *,
        contract_id: str,
        domain: str,
        learning_type: Any,
        improvement: Mapping[str, Any],
        timestamp: Optional[datetime] = None,
        learning_context: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__({
            "contract_id": contract_id,
            "domain": domain,
            "learning_type": _enum_value(learning_type),
            "improvement": dict(improvement),
            "timestamp": timestamp or now_utc(),
            "learning_context": dict(learning_context) if learning_context else None,
        })

    @property
    def contract_id(self) -> str:
        return self._payload["contract_id"]

    @property
    def learning_type(self) -> str:
        return self._payload["learning_type"]

    @property
    def improvement(self) -> Dict[str, Any]:
        return dict(self._payload["improvement"])

    @property
    def confidence(self) -> Optional[float]:
        return self._payload["improvement"].get("confidence")

    def was_applied_automatically(self) -> bool:
        return bool(self._payload["improvement"].get("applied_automatically"))
