"""
capability.py

Capability Primitive: one invocable automation action on a target page.

A Capability is an immutable record describing:
- What can be done (type, description, return type)
- Where it happens (selector with fallbacks)
- With what inputs (parameter definitions)
- Under what conditions (preconditions, validation rules)
- How it is typically used (examples)

Design Invariants:
- Immutable after creation; edits produce a new instance
- Construction never validates; validate() reports problems
- validate() and validate_parameters() return reports, never raise for
  domain problems
- to_dict()/from_dict() round-trip every field
- No back-reference to the owning Contract
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pagecontract.config import get_settings
from pagecontract.errors import ContractImmutabilityError
from pagecontract.observability import get_logger
from pagecontract.parameters import (
    ParameterDefinition,
    ParameterLike,
    check_definitions,
    coerce_parameters,
    validate_arguments,
)
from pagecontract.selector import (
    Selector,
    coerce_selector,
    fallbacks_of,
    looks_like_selector,
    primary_of,
    selector_to_wire,
)
from pagecontract.serialization import (
    deep_copy_json,
    drop_none,
    dumps_document,
    format_timestamp,
    loads_document,
    now_utc,
    parse_timestamp,
    require_mapping,
)
from pagecontract.validation import CapabilityValidationResult, ValidationResult

logger = get_logger(__name__)


# =============================================================================
# Enumerations
# =============================================================================

class CapabilityType(Enum):
    ACTION = "action"
    QUERY = "query"
    NAVIGATION = "navigation"
    FORM = "form"
    FILE = "file"
    WAIT = "wait"
    VALIDATION = "validation"


class ConditionType(Enum):
    ELEMENT = "element"
    URL = "url"
    TEXT = "text"
    CUSTOM = "custom"


# =============================================================================
# Satellite Value Types
# =============================================================================

@dataclass(frozen=True)
class ReturnTypeDefinition:
    """Declared result of a capability. ``type`` may also be ``void``."""
    type: str
    description: Optional[str] = None
    schema: Optional[Dict[str, Any]] = None
    examples: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "schema", deep_copy_json(self.schema))
        object.__setattr__(self, "examples", tuple(deep_copy_json(list(self.examples or ()))))

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "type": self.type,
            "description": self.description,
            "schema": deep_copy_json(self.schema),
            "examples": deep_copy_json(list(self.examples)) if self.examples else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReturnTypeDefinition":
        data = require_mapping(data, "returnType")
        return cls(
            type=data.get("type") or "",
            description=data.get("description"),
            schema=data.get("schema"),
            examples=tuple(data.get("examples") or ()),
        )


@dataclass(frozen=True)
class ValidationRules:
    """Element checks an executor performs before acting."""
    element_exists: Optional[bool] = None
    element_visible: Optional[bool] = None
    element_enabled: Optional[bool] = None
    custom_validator: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "elementExists": self.element_exists,
            "elementVisible": self.element_visible,
            "elementEnabled": self.element_enabled,
            "customValidator": self.custom_validator,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationRules":
        data = require_mapping(data, "validation")
        return cls(
            element_exists=data.get("elementExists"),
            element_visible=data.get("elementVisible"),
            element_enabled=data.get("elementEnabled"),
            custom_validator=data.get("customValidator"),
        )


@dataclass(frozen=True)
class ExecutionCondition:
    """A precondition on page state; ``negate`` inverts it."""
    type: str
    selector: Optional[str] = None
    url_pattern: Optional[str] = None
    text: Optional[str] = None
    custom_condition: Optional[str] = None
    negate: Optional[bool] = None

    def __post_init__(self):
        if isinstance(self.type, ConditionType):
            object.__setattr__(self, "type", self.type.value)

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "type": self.type,
            "selector": self.selector,
            "urlPattern": self.url_pattern,
            "text": self.text,
            "customCondition": self.custom_condition,
            "negate": self.negate,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionCondition":
        data = require_mapping(data, "condition")
        return cls(
            type=data.get("type") or "",
            selector=data.get("selector"),
            url_pattern=data.get("urlPattern"),
            text=data.get("text"),
            custom_condition=data.get("customCondition"),
            negate=data.get("negate"),
        )


@dataclass(frozen=True)
class CapabilityExample:
    """
    A documented invocation.

    ``parameters`` is kept exactly as given; validate() checks it against
    the capability's parameter schema.
    """
    description: str
    parameters: Any = None
    expected_result: Any = None
    execution_time: Optional[float] = None

    def __post_init__(self):
        parameters = {} if self.parameters is None else self.parameters
        object.__setattr__(self, "parameters", deep_copy_json(parameters))
        object.__setattr__(self, "expected_result", deep_copy_json(self.expected_result))

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "description": self.description,
            "parameters": deep_copy_json(self.parameters),
            "expectedResult": deep_copy_json(self.expected_result),
            "executionTime": self.execution_time,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilityExample":
        data = require_mapping(data, "example")
        return cls(
            description=data.get("description") or "",
            parameters=data.get("parameters"),
            expected_result=data.get("expectedResult"),
            execution_time=data.get("executionTime"),
        )


def _coerce_items(items: Optional[Iterable[Any]], cls) -> Tuple[Any, ...]:
    if not items:
        return ()
    return tuple(item if isinstance(item, cls) else cls.from_dict(item) for item in items)


def _coerce_optional(value: Any, cls) -> Any:
    if value is None or isinstance(value, cls):
        return value
    return cls.from_dict(value)


# =============================================================================
# Capability
# =============================================================================

class Capability:
    """
    An immutable description of one automation capability.

    Attributes:
        id: Identity of the capability
        name: Human-facing capability name
        type: One of CapabilityType's values
        description: What the capability does
        selector: Bare selector string or SelectorDefinition
        parameters: Ordered parameter definitions
        return_type: Declared result, if any
        validation: Element validation rules, if any
        timeout: Execution timeout hint for the executor
        retries: Retry count hint for the executor
        conditions: Execution preconditions
        examples: Documented invocations
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    __slots__ = (
        '_id',
        '_name',
        '_type',
        '_description',
        '_selector',
        '_parameters',
        '_return_type',
        '_validation',
        '_timeout',
        '_retries',
        '_conditions',
        '_examples',
        '_created_at',
        '_updated_at',
        '_frozen',
    )

    def __init__(
        self,
        *,
        id: str,
        name: str,
        type: Union[str, CapabilityType],
        description: str,
        selector: Union[Selector, Dict[str, Any]],
        created_at: datetime,
        updated_at: datetime,
        parameters: Optional[Sequence[ParameterLike]] = None,
        return_type: Optional[Union[ReturnTypeDefinition, Dict[str, Any]]] = None,
        validation: Optional[Union[ValidationRules, Dict[str, Any]]] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        conditions: Optional[Sequence[Union[ExecutionCondition, Dict[str, Any]]]] = None,
        examples: Optional[Sequence[Union[CapabilityExample, Dict[str, Any]]]] = None,
    ):
        if isinstance(type, CapabilityType):
            type = type.value

        object.__setattr__(self, '_id', id)
        object.__setattr__(self, '_name', name)
        object.__setattr__(self, '_type', type)
        object.__setattr__(self, '_description', description)
        object.__setattr__(self, '_selector', coerce_selector(selector))
        object.__setattr__(self, '_parameters', coerce_parameters(parameters))
        object.__setattr__(self, '_return_type', _coerce_optional(return_type, ReturnTypeDefinition))
        object.__setattr__(self, '_validation', _coerce_optional(validation, ValidationRules))
        object.__setattr__(self, '_timeout', timeout)
        object.__setattr__(self, '_retries', retries)
        object.__setattr__(self, '_conditions', _coerce_items(conditions, ExecutionCondition))
        object.__setattr__(self, '_examples', _coerce_items(examples, CapabilityExample))
        object.__setattr__(self, '_created_at', parse_timestamp(created_at, "createdAt"))
        object.__setattr__(self, '_updated_at', parse_timestamp(updated_at, "updatedAt"))
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError("Capability", f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError("Capability", f"delete attribute '{name}'")
        object.__delattr__(self, name)

    @classmethod
    def create(
        cls,
        id: str,
        name: str,
        type: Union[str, CapabilityType],
        description: str,
        selector: Union[Selector, Dict[str, Any]],
        *,
        parameters: Optional[Sequence[ParameterLike]] = None,
        return_type: Optional[Union[ReturnTypeDefinition, Dict[str, Any]]] = None,
        validation: Optional[Union[ValidationRules, Dict[str, Any]]] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        conditions: Optional[Sequence[Union[ExecutionCondition, Dict[str, Any]]]] = None,
        examples: Optional[Sequence[Union[CapabilityExample, Dict[str, Any]]]] = None,
    ) -> "Capability":
        """Create a new capability stamped with the current time."""
        now = now_utc()
        return cls(
            id=id,
            name=name,
            type=type,
            description=description,
            selector=selector,
            parameters=parameters,
            return_type=return_type,
            validation=validation,
            timeout=timeout,
            retries=retries,
            conditions=conditions,
            examples=examples,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> str:
        return self._type

    @property
    def description(self) -> str:
        return self._description

    @property
    def selector(self) -> Selector:
        return self._selector

    @property
    def primary_selector(self) -> str:
        return primary_of(self._selector)

    @property
    def fallback_selectors(self) -> Tuple[str, ...]:
        return fallbacks_of(self._selector)

    @property
    def parameters(self) -> Tuple[ParameterDefinition, ...]:
        return self._parameters

    @property
    def return_type(self) -> Optional[ReturnTypeDefinition]:
        return self._return_type

    @property
    def validation(self) -> Optional[ValidationRules]:
        return self._validation

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def retries(self) -> Optional[int]:
        return self._retries

    @property
    def conditions(self) -> Tuple[ExecutionCondition, ...]:
        return self._conditions

    @property
    def examples(self) -> Tuple[CapabilityExample, ...]:
        return self._examples

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    # -------------------------------------------------------------------------
    # Selector & Parameter Access
    # -------------------------------------------------------------------------

    def all_selectors(self) -> List[str]:
        """Primary selector followed by fallbacks, in that fixed order."""
        return [self.primary_selector, *self.fallback_selectors]

    def required_parameters(self) -> List[ParameterDefinition]:
        return [p for p in self._parameters if p.required]

    def optional_parameters(self) -> List[ParameterDefinition]:
        return [p for p in self._parameters if not p.required]

    def get_parameter(self, name: str) -> Optional[ParameterDefinition]:
        """Get a parameter by name, or None."""
        for param in self._parameters:
            if param.name == name:
                return param
        return None

    def has_parameter(self, name: str) -> bool:
        return self.get_parameter(name) is not None

    def requires_parameters(self) -> bool:
        return any(p.required for p in self._parameters)

    def is_action(self) -> bool:
        return self._type == CapabilityType.ACTION.value

    def is_query(self) -> bool:
        return self._type == CapabilityType.QUERY.value

    def is_form(self) -> bool:
        return self._type == CapabilityType.FORM.value

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_parameters(self, arguments: Optional[Mapping[str, Any]]) -> ValidationResult:
        """Validate concrete invocation arguments against this capability."""
        return validate_arguments(self._parameters, arguments)

    def validate(self) -> CapabilityValidationResult:
        """
        Check this capability's structure.

        Errors: missing id/name/description/primary selector, broken
        parameter definitions, examples whose arguments do not satisfy the
        parameter schema. Warnings: suspicious selectors, examples without
        a description.
        """
        errors: List[str] = []
        warnings: List[str] = []

        if not self._id:
            errors.append("Capability ID is required")
        if not self._name:
            errors.append("Capability name is required")
        if not self._description:
            errors.append("Capability description is required")

        primary = self.primary_selector
        if not primary:
            errors.append("Primary selector is required")

        tokens = get_settings().suspicious_selector_tokens
        if primary and not looks_like_selector(primary, tokens):
            warnings.append("Primary selector may not be valid CSS")
        for fallback in self.fallback_selectors:
            if not looks_like_selector(fallback, tokens):
                warnings.append(f"Fallback selector '{fallback}' may not be valid CSS")

        errors.extend(check_definitions(self._parameters))

        for index, example in enumerate(self._examples, start=1):
            if not example.description:
                warnings.append(f"Example {index} is missing description")
            try:
                result = self.validate_parameters(example.parameters)
            except Exception as e:
                logger.warning(
                    "example_validation_failed",
                    capability_id=self._id,
                    example=index,
                    error=str(e),
                )
                errors.append(f"Example {index}: could not be validated ({e})")
                continue
            errors.extend(result.prefixed(f"Example {index}: ").errors)

        logger.debug(
            "capability_validated",
            capability_id=self._id,
            errors=len(errors),
            warnings=len(warnings),
        )
        return ValidationResult.from_messages(errors, warnings)

    # -------------------------------------------------------------------------
    # Comparison Methods
    # -------------------------------------------------------------------------

    def _fields(self) -> Tuple[Any, ...]:
        return (
            self._id,
            self._name,
            self._type,
            self._description,
            self._selector,
            self._parameters,
            self._return_type,
            self._validation,
            self._timeout,
            self._retries,
            self._conditions,
            self._examples,
            self._created_at,
            self._updated_at,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Capability):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash((self._id, self._name, self._type, self._created_at, self._updated_at))

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire form."""
        return drop_none({
            "id": self._id,
            "name": self._name,
            "type": self._type,
            "description": self._description,
            "selector": selector_to_wire(self._selector),
            "parameters": [p.to_dict() for p in self._parameters],
            "returnType": self._return_type.to_dict() if self._return_type else None,
            "validation": self._validation.to_dict() if self._validation else None,
            "timeout": self._timeout,
            "retries": self._retries,
            "conditions": [c.to_dict() for c in self._conditions],
            "examples": [e.to_dict() for e in self._examples],
            "createdAt": format_timestamp(self._created_at),
            "updatedAt": format_timestamp(self._updated_at),
        })

    def to_json(self, *, indent: Optional[int] = None) -> str:
        """Convert to JSON string."""
        return dumps_document(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Capability":
        """Construct from the wire form."""
        data = require_mapping(data, "capability")
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            type=data.get("type") or "",
            description=data.get("description") or "",
            selector=data.get("selector"),
            parameters=data.get("parameters"),
            return_type=data.get("returnType"),
            validation=data.get("validation"),
            timeout=data.get("timeout"),
            retries=data.get("retries"),
            conditions=data.get("conditions"),
            examples=data.get("examples"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> "Capability":
        """Construct from JSON string."""
        return cls.from_dict(loads_document(json_str, "capability"))

    # -------------------------------------------------------------------------
    # String Representations
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Capability(id={self._id!r}, name={self._name!r}, "
            f"type={self._type!r}, parameters={len(self._parameters)})"
        )

    def __str__(self) -> str:
        return f"{self._name} ({self._type}): {self.primary_selector}"
