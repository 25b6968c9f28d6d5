"""
contract.py

Contract Primitive: a versioned bundle of capabilities and workflows for
one target domain.

Design Invariants:
- Immutable after creation; with_*() methods return new contracts with a
  refreshed updated_at and leave the original untouched
- Capability and workflow maps are name-keyed and keep insertion order
- Workflow steps reference capabilities by name; dangling references are
  reported by validate(), not rejected at construction
- validate() aggregates every capability's report into one
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pagecontract.capability import Capability
from pagecontract.errors import ContractImmutabilityError
from pagecontract.observability import get_logger
from pagecontract.parameters import check_definitions
from pagecontract.serialization import (
    drop_none,
    dumps_document,
    format_timestamp,
    loads_document,
    now_utc,
    optional_mapping,
    parse_timestamp,
    require_mapping,
)
from pagecontract.validation import ValidationResult
from pagecontract.workflow import WorkflowDefinition

logger = get_logger(__name__)


# =============================================================================
# ContractMetadata
# =============================================================================

@dataclass(frozen=True)
class ContractMetadata:
    """
    Descriptive information about a contract.

    Attributes:
        author: Who wrote or discovered the contract
        tags: Free-form labels
        compatibility_score: How well the contract matches the live site
        validation_results: History of validation reports
    """
    author: Optional[str] = None
    tags: Tuple[str, ...] = ()
    compatibility_score: Optional[float] = None
    validation_results: Tuple[ValidationResult, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple(self.tags or ()))
        results = tuple(
            r if isinstance(r, ValidationResult) else ValidationResult.from_dict(r)
            for r in (self.validation_results or ())
        )
        object.__setattr__(self, "validation_results", results)

    def with_validation_result(self, result: ValidationResult) -> "ContractMetadata":
        return ContractMetadata(
            author=self.author,
            tags=self.tags,
            compatibility_score=self.compatibility_score,
            validation_results=self.validation_results + (result,),
        )

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "author": self.author,
            "tags": list(self.tags) if self.tags else None,
            "compatibilityScore": self.compatibility_score,
            "validationResults": (
                [r.to_dict() for r in self.validation_results]
                if self.validation_results else None
            ),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractMetadata":
        data = require_mapping(data, "metadata")
        return cls(
            author=data.get("author"),
            tags=tuple(data.get("tags") or ()),
            compatibility_score=data.get("compatibilityScore"),
            validation_results=tuple(data.get("validationResults") or ()),
        )


CapabilityLike = Union[Capability, Dict[str, Any]]
WorkflowLike = Union[WorkflowDefinition, Dict[str, Any]]
MetadataLike = Union[ContractMetadata, Dict[str, Any]]


def _coerce_capabilities(capabilities: Optional[Mapping[str, CapabilityLike]]) -> Dict[str, Capability]:
    if not capabilities:
        return {}
    return {
        name: cap if isinstance(cap, Capability) else Capability.from_dict(cap)
        for name, cap in capabilities.items()
    }


def _coerce_workflows(workflows: Optional[Mapping[str, WorkflowLike]]) -> Optional[Dict[str, WorkflowDefinition]]:
    if workflows is None:
        return None
    return {
        name: wf if isinstance(wf, WorkflowDefinition) else WorkflowDefinition.from_dict(wf)
        for name, wf in workflows.items()
    }


def _coerce_metadata(metadata: Optional[MetadataLike]) -> Optional[ContractMetadata]:
    if metadata is None or isinstance(metadata, ContractMetadata):
        return metadata
    return ContractMetadata.from_dict(metadata)


# =============================================================================
# Contract
# =============================================================================

class Contract:
    """
    An immutable automation contract for one domain.

    Attributes:
        id: Identity of the contract
        version: Contract version string
        domain: Target site or domain identifier
        title: Human-facing title
        description: Optional longer description
        capabilities: Capability name -> Capability
        workflows: Workflow name -> WorkflowDefinition, or None
        metadata: ContractMetadata, or None
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    __slots__ = (
        '_id',
        '_version',
        '_domain',
        '_title',
        '_description',
        '_capabilities',
        '_workflows',
        '_metadata',
        '_created_at',
        '_updated_at',
        '_frozen',
    )

    def __init__(
        self,
        *,
        id: str,
        version: str,
        domain: str,
        title: str,
        capabilities: Optional[Mapping[str, CapabilityLike]],
        created_at: datetime,
        updated_at: datetime,
        description: Optional[str] = None,
        workflows: Optional[Mapping[str, WorkflowLike]] = None,
        metadata: Optional[MetadataLike] = None,
    ):
        object.__setattr__(self, '_id', id)
        object.__setattr__(self, '_version', version)
        object.__setattr__(self, '_domain', domain)
        object.__setattr__(self, '_title', title)
        object.__setattr__(self, '_description', description)
        object.__setattr__(self, '_capabilities', _coerce_capabilities(capabilities))
        object.__setattr__(self, '_workflows', _coerce_workflows(workflows))
        object.__setattr__(self, '_metadata', _coerce_metadata(metadata))
        object.__setattr__(self, '_created_at', parse_timestamp(created_at, "createdAt"))
        object.__setattr__(self, '_updated_at', parse_timestamp(updated_at, "updatedAt"))
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError("Contract", f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if getattr(self, '_frozen', False):
            raise ContractImmutabilityError("Contract", f"delete attribute '{name}'")
        object.__delattr__(self, name)

    @classmethod
    def create(
        cls,
        id: str,
        version: str,
        domain: str,
        title: str,
        capabilities: Optional[Mapping[str, CapabilityLike]] = None,
        *,
        description: Optional[str] = None,
        workflows: Optional[Mapping[str, WorkflowLike]] = None,
        metadata: Optional[MetadataLike] = None,
    ) -> "Contract":
        """Create a new contract stamped with the current time."""
        now = now_utc()
        return cls(
            id=id,
            version=version,
            domain=domain,
            title=title,
            description=description,
            capabilities=capabilities,
            workflows=workflows,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )

    def _replace(self, **changes: Any) -> "Contract":
        fields = {
            "id": self._id,
            "version": self._version,
            "domain": self._domain,
            "title": self._title,
            "description": self._description,
            "capabilities": self._capabilities,
            "workflows": self._workflows,
            "metadata": self._metadata,
            "created_at": self._created_at,
            "updated_at": now_utc(),
        }
        fields.update(changes)
        return Contract(**fields)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> str:
        return self._version

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def capabilities(self) -> Dict[str, Capability]:
        """Return a copy of the capability map."""
        return dict(self._capabilities)

    @property
    def workflows(self) -> Optional[Dict[str, WorkflowDefinition]]:
        """Return a copy of the workflow map, or None."""
        return dict(self._workflows) if self._workflows is not None else None

    @property
    def metadata(self) -> Optional[ContractMetadata]:
        return self._metadata

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_capability(self, name: str) -> Optional[Capability]:
        """Get a capability by name, or None."""
        return self._capabilities.get(name)

    def has_capability(self, name: str) -> bool:
        return name in self._capabilities

    def capability_names(self) -> List[str]:
        return list(self._capabilities)

    def get_workflow(self, name: str) -> Optional[WorkflowDefinition]:
        """Get a workflow by name, or None."""
        if self._workflows is None:
            return None
        return self._workflows.get(name)

    def workflow_names(self) -> List[str]:
        return list(self._workflows or {})

    # -------------------------------------------------------------------------
    # Updates (each returns a new Contract)
    # -------------------------------------------------------------------------

    def with_capability(self, name: str, capability: Capability) -> "Contract":
        """Add or replace a capability."""
        capabilities = dict(self._capabilities)
        capabilities[name] = capability
        return self._replace(capabilities=capabilities)

    def without_capability(self, name: str) -> "Contract":
        """Remove a capability; removing an absent name is a no-op."""
        capabilities = dict(self._capabilities)
        capabilities.pop(name, None)
        return self._replace(capabilities=capabilities)

    def with_metadata(self, metadata: MetadataLike) -> "Contract":
        return self._replace(metadata=metadata)

    def with_workflow(self, name: str, workflow: WorkflowLike) -> "Contract":
        """Add or replace a workflow."""
        workflows = dict(self._workflows or {})
        workflows[name] = workflow
        return self._replace(workflows=workflows)

    def with_validation_result(self, result: ValidationResult) -> "Contract":
        """Record a validation report in the metadata history."""
        metadata = self._metadata or ContractMetadata()
        return self._replace(metadata=metadata.with_validation_result(result))

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """
        Check the contract and everything it holds.

        Each capability's own report is folded in with a
        ``Capability '<name>': `` prefix. Every workflow step must name a
        capability of this contract. Warnings never affect validity.
        """
        errors: List[str] = []
        warnings: List[str] = []

        if not self._id:
            errors.append("Contract ID is required")
        if not self._version:
            errors.append("Contract version is required")
        if not self._domain:
            errors.append("Contract domain is required")
        if not self._title:
            errors.append("Contract title is required")

        if not self._capabilities:
            warnings.append("Contract has no capabilities defined")

        for name, capability in self._capabilities.items():
            prefix = f"Capability '{name}': "
            try:
                result = capability.validate()
            except Exception as e:
                logger.warning(
                    "capability_validation_failed",
                    contract_id=self._id,
                    capability=name,
                    error=str(e),
                )
                errors.append(f"{prefix}{e}")
                continue
            folded = result.prefixed(prefix)
            errors.extend(folded.errors)
            warnings.extend(folded.warnings)

        for name, workflow in (self._workflows or {}).items():
            try:
                workflow_errors, workflow_warnings = self._check_workflow(name, workflow)
            except Exception as e:
                logger.warning(
                    "workflow_validation_failed",
                    contract_id=self._id,
                    workflow=name,
                    error=str(e),
                )
                errors.append(f"Workflow '{name}': {e}")
                continue
            errors.extend(workflow_errors)
            warnings.extend(workflow_warnings)

        logger.debug(
            "contract_validated",
            contract_id=self._id,
            capabilities=len(self._capabilities),
            errors=len(errors),
            warnings=len(warnings),
        )
        return ValidationResult.from_messages(errors, warnings)

    def _check_workflow(self, name: str, workflow: WorkflowDefinition) -> Tuple[List[str], List[str]]:
        """Cross-reference one workflow against this contract's capabilities."""
        errors: List[str] = []
        warnings: List[str] = []

        if not workflow.steps:
            warnings.append(f"Workflow '{name}' has no steps")

        for index, step in enumerate(workflow.steps, start=1):
            if not isinstance(step.capability, str):
                errors.append(
                    f"Workflow '{name}' step {index} capability must be a name, "
                    f"got {type(step.capability).__name__}"
                )
            elif not self.has_capability(step.capability):
                errors.append(
                    f"Workflow '{name}' references unknown capability '{step.capability}'"
                )

        handling = workflow.error_handling
        if handling is not None and handling.fallback_capability:
            fallback = handling.fallback_capability
            if not isinstance(fallback, str) or not self.has_capability(fallback):
                errors.append(
                    f"Workflow '{name}' fallback references unknown capability '{fallback}'"
                )

        if workflow.parameters:
            errors.extend(
                f"Workflow '{name}': {error}"
                for error in check_definitions(workflow.parameters)
            )

        return errors, warnings

    # -------------------------------------------------------------------------
    # Comparison Methods
    # -------------------------------------------------------------------------

    def _fields(self) -> Tuple[Any, ...]:
        return (
            self._id,
            self._version,
            self._domain,
            self._title,
            self._description,
            self._capabilities,
            self._workflows,
            self._metadata,
            self._created_at,
            self._updated_at,
        )

    def equals_except_updated_at(self, other: "Contract") -> bool:
        """Compare every field except updated_at."""
        return self._fields()[:-1] == other._fields()[:-1]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Contract):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash((self._id, self._version, self._domain, self._updated_at))

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire form; capabilities serialize entry by entry."""
        return drop_none({
            "id": self._id,
            "version": self._version,
            "domain": self._domain,
            "title": self._title,
            "description": self._description,
            "capabilities": {
                name: capability.to_dict()
                for name, capability in self._capabilities.items()
            },
            "workflows": (
                {name: wf.to_dict() for name, wf in self._workflows.items()}
                if self._workflows is not None else None
            ),
            "metadata": self._metadata.to_dict() if self._metadata else None,
            "createdAt": format_timestamp(self._created_at),
            "updatedAt": format_timestamp(self._updated_at),
        })

    def to_json(self, *, indent: Optional[int] = None) -> str:
        """Convert to JSON string."""
        return dumps_document(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contract":
        """Construct from the wire form."""
        data = require_mapping(data, "contract")
        return cls(
            id=data.get("id") or "",
            version=data.get("version") or "",
            domain=data.get("domain") or "",
            title=data.get("title") or "",
            description=data.get("description"),
            capabilities=optional_mapping(data.get("capabilities"), "capabilities"),
            workflows=optional_mapping(data.get("workflows"), "workflows"),
            metadata=data.get("metadata"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> "Contract":
        """Construct from JSON string."""
        return cls.from_dict(loads_document(json_str, "contract"))

    # -------------------------------------------------------------------------
    # String Representations
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Contract(id={self._id!r}, domain={self._domain!r}, "
            f"version={self._version!r}, capabilities={len(self._capabilities)})"
        )

    def __str__(self) -> str:
        return f"{self._domain}/{self._title}@{self._version}"
