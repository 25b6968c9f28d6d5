"""
errors.py

Exception taxonomy for pagecontract.

Expected domain problems (missing fields, dangling workflow references,
bad invocation arguments) are never raised; they are returned inside a
ValidationResult. The classes below cover the remaining cases:

- Misuse of an immutable value (attribute assignment or deletion)
- Wire data that cannot be decoded at all
- Lookup failures in the port registry
"""

from typing import Any


class PageContractError(Exception):
    """
    Base class for all pagecontract exceptions.

    Every error carries a short code so callers and logs can tell
    failures apart without parsing messages.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "X000",
    ):
        self.message = message
        self.error_code = error_code
        super().__init__(self.format())

    def format(self) -> str:
        """Format as human-readable error message."""
        return f"[{self.error_code}] {self.message}"


class ContractImmutabilityError(PageContractError):
    """Raised when attempting to mutate a capability, contract or event."""

    def __init__(self, kind: str, operation: str):
        self.kind = kind
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: {kind} is immutable after creation",
            error_code="X001",
        )


class SerializationError(PageContractError):
    """Raised when wire data cannot be decoded into the model."""

    def __init__(self, reason: str, *, field_name: str = ""):
        self.reason = reason
        self.field_name = field_name
        location = f" ({field_name})" if field_name else ""
        super().__init__(
            f"Could not decode contract data{location}: {reason}",
            error_code="X002",
        )


class PortNotFoundError(PageContractError):
    """Raised when a registry lookup finds no implementation for a key."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(
            f"Port {key} not found",
            error_code="X003",
        )
