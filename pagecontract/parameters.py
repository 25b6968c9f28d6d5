"""
parameters.py

Parameter schema for capabilities and workflows.

A ParameterDefinition declares one named input: its symbolic type, whether
it is required, an optional default, and an optional constraint block.
validate_arguments() checks a concrete argument mapping against a list of
definitions and returns a complete report in a single pass.

Design Invariants:
- Definitions are immutable values
- Construction never rejects semantic problems (empty names, unknown
  types); those are reported by check_definitions()
- Argument checking never raises for bad arguments; every failed rule adds
  exactly one message
- Messages follow argument and declaration order
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pagecontract.serialization import deep_copy_json, drop_none, require_mapping
from pagecontract.validation import ValidationResult


# =============================================================================
# Parameter Types
# =============================================================================

class ParameterType(Enum):
    """Symbolic parameter types understood by the argument validator."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    FILE = "file"

    @classmethod
    def is_known(cls, value: str) -> bool:
        return value in cls._value2member_map_


def kind_of(value: Any) -> str:
    """
    Return the symbolic kind of a runtime value.

    bool is checked before int because bool subclasses int.
    """
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (bytes, bytearray, os.PathLike)):
        return "file"
    return type(value).__name__


def _type_matches(expected: str, value: Any) -> bool:
    kind = kind_of(value)
    if expected == ParameterType.ARRAY.value:
        return kind == "array"
    if expected == ParameterType.FILE.value:
        # A file may be given as raw content or as a path string
        return kind in ("file", "string")
    return kind == expected


def _enum_contains(allowed: Sequence[Any], value: Any) -> bool:
    """Containment that never treats True as 1 or 0 as False."""
    kind = kind_of(value)
    return any(kind_of(candidate) == kind and candidate == value for candidate in allowed)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_length(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


# =============================================================================
# ParameterValidation
# =============================================================================

@dataclass(frozen=True)
class ParameterValidation:
    """
    Declarative constraints on a parameter value.

    String bounds count characters; numeric bounds are inclusive; ``enum``
    applies to values of any type.
    """
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    enum: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        if isinstance(self.enum, (list, tuple)):
            object.__setattr__(self, "enum", tuple(deep_copy_json(list(self.enum))))
        else:
            object.__setattr__(self, "enum", deep_copy_json(self.enum))

    def problems(self) -> List[str]:
        """Describe rules whose values cannot be applied; empty when usable."""
        problems: List[str] = []
        for key, bound in (("minLength", self.min_length), ("maxLength", self.max_length)):
            if bound is not None and not _is_length(bound):
                problems.append(f"{key} must be a non-negative integer, got {bound!r}")
        for key, bound in (("minimum", self.minimum), ("maximum", self.maximum)):
            if bound is not None and not _is_number(bound):
                problems.append(f"{key} must be a number, got {bound!r}")
        if self.pattern is not None:
            if not isinstance(self.pattern, str):
                problems.append(f"pattern must be a string, got {self.pattern!r}")
            else:
                try:
                    re.compile(self.pattern)
                except re.error as e:
                    problems.append(f"pattern '{self.pattern}' does not compile ({e})")
        if self.enum is not None and not isinstance(self.enum, tuple):
            problems.append(f"enum must be a list, got {self.enum!r}")
        return problems

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "pattern": self.pattern,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "enum": list(self.enum) if isinstance(self.enum, tuple) else deep_copy_json(self.enum),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterValidation":
        data = require_mapping(data, "parameter.validation")
        return cls(
            min_length=data.get("minLength"),
            max_length=data.get("maxLength"),
            pattern=data.get("pattern"),
            minimum=data.get("minimum"),
            maximum=data.get("maximum"),
            enum=data.get("enum"),
        )


# =============================================================================
# ParameterDefinition
# =============================================================================

@dataclass(frozen=True)
class ParameterDefinition:
    """
    One declared input of a capability or workflow.

    Attributes:
        name: Unique within its parameter list (checked, not enforced)
        type: Symbolic type name, see ParameterType
        description: Optional human-readable description
        required: Whether an argument must be supplied
        default: Value an executor uses when the argument is absent
        validation: Optional constraint block
        examples: Sample values
    """
    name: str
    type: str
    description: Optional[str] = None
    required: bool = False
    default: Any = None
    validation: Optional[ParameterValidation] = None
    examples: Tuple[Any, ...] = ()

    def __post_init__(self):
        if isinstance(self.type, ParameterType):
            object.__setattr__(self, "type", self.type.value)
        if isinstance(self.validation, dict):
            object.__setattr__(self, "validation", ParameterValidation.from_dict(self.validation))
        object.__setattr__(self, "default", deep_copy_json(self.default))
        object.__setattr__(self, "examples", tuple(deep_copy_json(list(self.examples or ()))))

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
            "default": deep_copy_json(self.default),
            "validation": self.validation.to_dict() if self.validation else None,
            "examples": deep_copy_json(list(self.examples)) if self.examples else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterDefinition":
        data = require_mapping(data, "parameter")
        validation = data.get("validation")
        return cls(
            name=data.get("name") or "",
            type=data.get("type") or "",
            description=data.get("description"),
            required=bool(data.get("required", False)),
            default=data.get("default"),
            validation=ParameterValidation.from_dict(validation) if validation is not None else None,
            examples=tuple(data.get("examples") or ()),
        )


ParameterLike = Union[ParameterDefinition, Dict[str, Any]]


def coerce_parameters(parameters: Optional[Sequence[ParameterLike]]) -> Tuple[ParameterDefinition, ...]:
    """Accept definitions or their wire dicts; keep declaration order."""
    if not parameters:
        return ()
    return tuple(
        p if isinstance(p, ParameterDefinition) else ParameterDefinition.from_dict(p)
        for p in parameters
    )


# =============================================================================
# Structural Checks
# =============================================================================

def check_definitions(parameters: Sequence[ParameterDefinition]) -> List[str]:
    """
    Report structural problems in a parameter list.

    Returns error messages for duplicate names, missing names, missing
    types, types outside the ParameterType vocabulary and constraint
    blocks whose values cannot be applied.
    """
    errors: List[str] = []
    seen = set()

    for param in parameters:
        if param.name in seen:
            errors.append(f"Duplicate parameter name: {param.name}")
        seen.add(param.name)

        if not param.name:
            errors.append("Parameter name is required")

        if not param.type:
            errors.append(f"Parameter '{param.name}' type is required")
        elif not ParameterType.is_known(param.type):
            errors.append(f"Parameter '{param.name}' has unsupported type '{param.type}'")

        if param.validation is not None:
            errors.extend(
                f"Parameter '{param.name}' has invalid validation: {problem}"
                for problem in param.validation.problems()
            )

    return errors


# =============================================================================
# Argument Validation
# =============================================================================

def _check_constraints(name: str, value: Any, rules: ParameterValidation) -> List[str]:
    # Rules with unusable values are skipped here; check_definitions() reports them
    errors: List[str] = []

    if isinstance(value, str):
        if _is_length(rules.min_length) and len(value) < rules.min_length:
            errors.append(f"Parameter '{name}' must be at least {rules.min_length} characters")
        if _is_length(rules.max_length) and len(value) > rules.max_length:
            errors.append(f"Parameter '{name}' must be at most {rules.max_length} characters")
        if isinstance(rules.pattern, str):
            try:
                matched = re.fullmatch(rules.pattern, value) is not None
            except re.error:
                errors.append(f"Parameter '{name}' has invalid pattern '{rules.pattern}'")
            else:
                if not matched:
                    errors.append(
                        f"Parameter '{name}' does not match required pattern '{rules.pattern}'"
                    )

    if _is_number(value):
        if _is_number(rules.minimum) and value < rules.minimum:
            errors.append(f"Parameter '{name}' must be at least {rules.minimum}")
        if _is_number(rules.maximum) and value > rules.maximum:
            errors.append(f"Parameter '{name}' must be at most {rules.maximum}")

    if isinstance(rules.enum, tuple) and not _enum_contains(rules.enum, value):
        allowed = ", ".join(str(v) for v in rules.enum)
        errors.append(f"Parameter '{name}' must be one of: {allowed}")

    return errors


def validate_arguments(
    parameters: Sequence[ParameterDefinition],
    arguments: Optional[Mapping],
) -> ValidationResult:
    """
    Validate concrete arguments against declared parameters.

    Args:
        parameters: Declared parameter definitions, in declaration order
        arguments: Argument name -> value mapping (None means no arguments)

    Returns:
        A ValidationResult; ``valid`` is False iff any error was found.

    Raises:
        TypeError: If ``arguments`` is not a mapping
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise TypeError(f"arguments must be a mapping, got {type(arguments).__name__}")

    errors: List[str] = []
    warnings: List[str] = []

    by_name: Dict[str, ParameterDefinition] = {}
    for param in parameters:
        by_name.setdefault(param.name, param)

    reported = set()
    for param in parameters:
        if param.required and param.name not in arguments and param.name not in reported:
            errors.append(f"Required parameter '{param.name}' is missing")
            reported.add(param.name)

    for name, value in arguments.items():
        param = by_name.get(name)
        if param is None:
            warnings.append(f"Unknown parameter '{name}' provided")
            continue

        if not _type_matches(param.type, value):
            errors.append(f"Parameter '{name}' expected {param.type}, got {kind_of(value)}")

        if param.validation is not None:
            errors.extend(_check_constraints(name, value, param.validation))

    return ValidationResult.from_messages(errors, warnings)
