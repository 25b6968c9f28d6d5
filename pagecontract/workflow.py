"""
workflow.py

Multi-step workflows composed from a contract's capabilities.

Steps reference capabilities by name only. Whether those names exist is
checked by Contract.validate(), so a workflow can be built before the
capabilities it uses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pagecontract.capability import ExecutionCondition
from pagecontract.parameters import ParameterDefinition, ParameterLike, coerce_parameters
from pagecontract.serialization import deep_copy_json, drop_none, require_mapping


class ErrorStrategy(Enum):
    ABORT = "abort"
    CONTINUE = "continue"
    RETRY = "retry"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class RetryConfiguration:
    attempts: int
    delay: float

    def to_dict(self) -> Dict[str, Any]:
        return {"attempts": self.attempts, "delay": self.delay}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryConfiguration":
        data = require_mapping(data, "step.retry")
        return cls(attempts=data.get("attempts", 0), delay=data.get("delay", 0))


@dataclass(frozen=True)
class ErrorHandling:
    """How an executor reacts when a workflow step fails."""
    strategy: str
    max_retries: Optional[int] = None
    fallback_capability: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.strategy, ErrorStrategy):
            object.__setattr__(self, "strategy", self.strategy.value)

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "strategy": self.strategy,
            "maxRetries": self.max_retries,
            "fallbackCapability": self.fallback_capability,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorHandling":
        data = require_mapping(data, "errorHandling")
        return cls(
            strategy=data.get("strategy") or ErrorStrategy.ABORT.value,
            max_retries=data.get("maxRetries"),
            fallback_capability=data.get("fallbackCapability"),
        )


@dataclass(frozen=True)
class WorkflowStep:
    """
    One capability invocation inside a workflow.

    Attributes:
        capability: Name of a capability in the owning contract
        parameters: Literal arguments passed to the capability
        condition: Precondition gating this step
        on_success: Identifier of the step to run after success
        on_failure: Identifier of the step to run after failure
        retry: Per-step retry policy
    """
    capability: str
    parameters: Optional[Dict[str, Any]] = None
    condition: Optional[ExecutionCondition] = None
    on_success: Optional[str] = None
    on_failure: Optional[str] = None
    retry: Optional[RetryConfiguration] = None

    def __post_init__(self):
        object.__setattr__(self, "parameters", deep_copy_json(self.parameters))
        if isinstance(self.condition, dict):
            object.__setattr__(self, "condition", ExecutionCondition.from_dict(self.condition))
        if isinstance(self.retry, dict):
            object.__setattr__(self, "retry", RetryConfiguration.from_dict(self.retry))

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "capability": self.capability,
            "parameters": deep_copy_json(self.parameters),
            "condition": self.condition.to_dict() if self.condition else None,
            "onSuccess": self.on_success,
            "onFailure": self.on_failure,
            "retry": self.retry.to_dict() if self.retry else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowStep":
        data = require_mapping(data, "step")
        return cls(
            capability=data.get("capability") or "",
            parameters=data.get("parameters"),
            condition=data.get("condition"),
            on_success=data.get("onSuccess"),
            on_failure=data.get("onFailure"),
            retry=data.get("retry"),
        )


StepLike = Union[WorkflowStep, Dict[str, Any]]


@dataclass(frozen=True)
class WorkflowDefinition:
    """An ordered composition of capability invocations."""
    description: str = ""
    steps: Tuple[WorkflowStep, ...] = ()
    parameters: Optional[Tuple[ParameterDefinition, ...]] = None
    error_handling: Optional[ErrorHandling] = None

    def __post_init__(self):
        steps = tuple(
            s if isinstance(s, WorkflowStep) else WorkflowStep.from_dict(s)
            for s in (self.steps or ())
        )
        object.__setattr__(self, "steps", steps)
        if self.parameters is not None:
            object.__setattr__(self, "parameters", coerce_parameters(self.parameters))
        if isinstance(self.error_handling, dict):
            object.__setattr__(self, "error_handling", ErrorHandling.from_dict(self.error_handling))

    @classmethod
    def of(
        cls,
        description: str,
        steps: Sequence[StepLike],
        *,
        parameters: Optional[Sequence[ParameterLike]] = None,
        error_handling: Optional[Union[ErrorHandling, Dict[str, Any]]] = None,
    ) -> "WorkflowDefinition":
        return cls(
            description=description,
            steps=tuple(steps),
            parameters=tuple(parameters) if parameters is not None else None,
            error_handling=error_handling,
        )

    def referenced_capabilities(self) -> List[str]:
        """Capability names used by the steps, then the fallback capability."""
        names = [step.capability for step in self.steps]
        if (
            self.error_handling is not None
            and self.error_handling.fallback_capability
        ):
            names.append(self.error_handling.fallback_capability)
        return names

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters] if self.parameters is not None else None,
            "steps": [s.to_dict() for s in self.steps],
            "errorHandling": self.error_handling.to_dict() if self.error_handling else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowDefinition":
        data = require_mapping(data, "workflow")
        parameters = data.get("parameters")
        return cls(
            description=data.get("description") or "",
            steps=tuple(data.get("steps") or ()),
            parameters=tuple(parameters) if parameters is not None else None,
            error_handling=data.get("errorHandling"),
        )
