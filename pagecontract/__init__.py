"""
pagecontract: Automation Contracts for Web Pages
================================================

pagecontract models the automation surface of a web page as data:
capabilities (what can be done, where, with which parameters), workflows
composed from them, and the contract that bundles both for one domain.

Everything here is in-memory modeling, validation and serialization.
Executing a capability against a live browser is left to an execution
engine that consumes these contracts.

What's Public
-------------
Everything exported in ``__all__``:

- **Schema**: ParameterDefinition, ParameterValidation, validate_arguments
- **Model**: Capability, Contract, WorkflowDefinition and their value types
- **Reports**: ValidationResult
- **Collaborators**: events, ListenerTable, PortRegistry
- **Exceptions**: misuse, decoding and lookup errors

Example
-------
::

    from pagecontract import Capability, Contract

    login = Capability.create(
        "cap-login", "login", "action", "Submit the login form", "#submit",
        parameters=[{"name": "user", "type": "string", "required": True}],
    )
    contract = Contract.create(
        "c1", "1.0", "example.com", "Login", {"login": login},
        workflows={"signIn": {"steps": [{"capability": "login"}]}},
    )

    report = contract.validate()
    if not report.valid:
        print(report.errors)
"""

__version__ = "1.0.0"

__all__ = [
    # --- Package Metadata ---
    "__version__",

    # --- Reports ---
    "ValidationResult",
    "CapabilityValidationResult",

    # --- Parameter Schema ---
    "ParameterType",
    "ParameterValidation",
    "ParameterDefinition",
    "validate_arguments",
    "check_definitions",
    "kind_of",

    # --- Selectors ---
    "SelectorDefinition",
    "WaitCondition",
    "WaitType",
    "looks_like_selector",

    # --- Capability ---
    "Capability",
    "CapabilityType",
    "CapabilityExample",
    "ConditionType",
    "ExecutionCondition",
    "ReturnTypeDefinition",
    "ValidationRules",

    # --- Workflow ---
    "WorkflowDefinition",
    "WorkflowStep",
    "RetryConfiguration",
    "ErrorHandling",
    "ErrorStrategy",

    # --- Contract ---
    "Contract",
    "ContractMetadata",

    # --- Events & Listeners ---
    "Event",
    "ContractDiscoveredEvent",
    "ContractValidatedEvent",
    "ContractExecutedEvent",
    "ContractUpdatedEvent",
    "ContractLearningUpdatedEvent",
    "DiscoveryMethod",
    "ValidationType",
    "ChangeType",
    "LearningType",
    "ListenerTable",

    # --- Registry ---
    "PortRegistry",

    # --- Configuration ---
    "Settings",
    "get_settings",
    "configure_logging",

    # --- Exceptions ---
    "PageContractError",
    "ContractImmutabilityError",
    "SerializationError",
    "PortNotFoundError",
]

from pagecontract.capability import (
    Capability,
    CapabilityExample,
    CapabilityType,
    ConditionType,
    ExecutionCondition,
    ReturnTypeDefinition,
    ValidationRules,
)
from pagecontract.config import Settings, get_settings
from pagecontract.contract import Contract, ContractMetadata
from pagecontract.errors import (
    ContractImmutabilityError,
    PageContractError,
    PortNotFoundError,
    SerializationError,
)
from pagecontract.events import (
    ChangeType,
    ContractDiscoveredEvent,
    ContractExecutedEvent,
    ContractLearningUpdatedEvent,
    ContractUpdatedEvent,
    ContractValidatedEvent,
    DiscoveryMethod,
    Event,
    LearningType,
    ValidationType,
)
from pagecontract.listeners import ListenerTable
from pagecontract.observability import configure_logging
from pagecontract.parameters import (
    ParameterDefinition,
    ParameterType,
    ParameterValidation,
    check_definitions,
    kind_of,
    validate_arguments,
)
from pagecontract.registry import PortRegistry
from pagecontract.selector import (
    SelectorDefinition,
    WaitCondition,
    WaitType,
    looks_like_selector,
)
from pagecontract.validation import CapabilityValidationResult, ValidationResult
from pagecontract.workflow import (
    ErrorHandling,
    ErrorStrategy,
    RetryConfiguration,
    WorkflowDefinition,
    WorkflowStep,
)
