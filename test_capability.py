"""
test_capability.py

Tests for the Capability primitive.

Tests cover:
- Creation and immutability
- Selector and parameter accessors
- Structural validation (errors, warnings, examples)
- Argument validation delegation
- Serialization round trips
"""

from datetime import datetime, timezone

import pytest
from pagecontract import (
    Capability,
    CapabilityExample,
    CapabilityType,
    ContractImmutabilityError,
    ExecutionCondition,
    ParameterDefinition,
    ParameterValidation,
    ReturnTypeDefinition,
    SelectorDefinition,
    SerializationError,
    ValidationRules,
    WaitCondition,
)


CREATED = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
UPDATED = datetime(2025, 1, 2, 8, 30, 15, 250000, tzinfo=timezone.utc)


def make_capability(**overrides):
    fields = dict(
        id="cap-login",
        name="login",
        type="action",
        description="Submit the login form",
        selector="#login",
        parameters=[
            {"name": "user", "type": "string", "required": True},
            {"name": "password", "type": "string", "required": True},
            {"name": "remember", "type": "boolean"},
        ],
        created_at=CREATED,
        updated_at=UPDATED,
    )
    fields.update(overrides)
    return Capability(**fields)


# =============================================================================
# Creation
# =============================================================================

class TestCapabilityCreation:
    """Tests for constructing capabilities."""

    def test_create_stamps_both_timestamps(self):
        """Test create() sets equal, millisecond-precise UTC timestamps."""
        cap = Capability.create("c1", "search", "query", "Search box", "#q")
        assert cap.created_at == cap.updated_at
        assert cap.created_at.tzinfo is not None
        assert cap.created_at.microsecond % 1000 == 0

    def test_enum_type_is_normalized(self):
        """Test a CapabilityType member is stored as its value."""
        cap = Capability.create("c1", "search", CapabilityType.QUERY, "Search box", "#q")
        assert cap.type == "query"
        assert cap.is_query()
        assert not cap.is_action()

    def test_parameter_dicts_are_coerced(self):
        """Test wire-form parameters become ParameterDefinitions."""
        cap = make_capability()
        assert all(isinstance(p, ParameterDefinition) for p in cap.parameters)
        assert [p.name for p in cap.parameters] == ["user", "password", "remember"]

    def test_dict_selector_is_coerced(self):
        """Test a selector dict becomes a SelectorDefinition."""
        cap = make_capability(selector={"primary": "#a", "fallback": ["#b"]})
        assert isinstance(cap.selector, SelectorDefinition)

    def test_construction_does_not_validate(self):
        """Broken capabilities can be built; validate() reports problems."""
        cap = Capability.create("", "", "action", "", "")
        assert cap.id == ""


class TestCapabilityImmutability:
    """Capabilities cannot be changed after creation."""

    def test_cannot_set_attribute(self):
        """Test assignment raises an immutability error."""
        cap = make_capability()
        with pytest.raises(ContractImmutabilityError) as exc_info:
            cap._name = "other"
        assert exc_info.value.error_code == "X001"
        assert "Capability" in str(exc_info.value)

    def test_cannot_add_attribute(self):
        """Test new attributes cannot be added."""
        cap = make_capability()
        with pytest.raises(ContractImmutabilityError):
            cap.extra = 1

    def test_cannot_delete_attribute(self):
        """Test deletion raises an immutability error."""
        cap = make_capability()
        with pytest.raises(ContractImmutabilityError):
            del cap._id

    def test_parameters_are_a_tuple(self):
        """Test parameters are exposed as a tuple."""
        cap = make_capability()
        assert isinstance(cap.parameters, tuple)


# =============================================================================
# Accessors
# =============================================================================

class TestSelectorAccess:
    """Tests for primary/fallback selector access."""

    def test_bare_string_selector(self):
        """Test a plain string selector has no fallbacks."""
        cap = make_capability(selector="#login")
        assert cap.primary_selector == "#login"
        assert cap.fallback_selectors == ()
        assert cap.all_selectors() == ["#login"]

    def test_primary_then_fallbacks_in_order(self):
        """Test all_selectors() lists primary first, then fallbacks."""
        cap = make_capability(selector=SelectorDefinition(
            primary="#login",
            fallback=("button[type=submit]", ".login-btn"),
            wait=WaitCondition(type="visible", timeout=5000),
        ))
        assert cap.all_selectors() == ["#login", "button[type=submit]", ".login-btn"]


class TestParameterAccess:
    """Tests for parameter lookups."""

    def test_required_and_optional_split(self):
        """Test required and optional parameters are separated."""
        cap = make_capability()
        assert [p.name for p in cap.required_parameters()] == ["user", "password"]
        assert [p.name for p in cap.optional_parameters()] == ["remember"]
        assert cap.requires_parameters() is True

    def test_get_parameter(self):
        """Test lookup by name, including absent names."""
        cap = make_capability()
        assert cap.get_parameter("user").required is True
        assert cap.get_parameter("missing") is None
        assert cap.has_parameter("remember")
        assert not cap.has_parameter("missing")

    def test_no_parameters(self):
        """Test a capability without parameters."""
        cap = make_capability(parameters=None)
        assert cap.parameters == ()
        assert cap.requires_parameters() is False


# =============================================================================
# Validation
# =============================================================================

class TestCapabilityValidate:
    """Tests for structural validation."""

    def test_well_formed_capability_is_valid(self):
        """Test a complete capability has a clean report."""
        result = make_capability().validate()
        assert result.valid is True
        assert result.errors == ()
        assert result.warnings == ()

    def test_missing_identity_fields(self):
        """Test each missing identity field is an error."""
        result = Capability.create("", "", "action", "", "").validate()
        assert result.valid is False
        assert list(result.errors) == [
            "Capability ID is required",
            "Capability name is required",
            "Capability description is required",
            "Primary selector is required",
        ]
        assert result.warnings == ()

    def test_suspicious_primary_selector_is_warning(self):
        """Test markup in the primary selector only warns."""
        result = make_capability(selector="div><span").validate()
        assert result.valid is True
        assert result.warnings == ("Primary selector may not be valid CSS",)

    def test_suspicious_fallback_selector_is_warning(self):
        """Test suspicious or blank fallbacks only warn."""
        cap = make_capability(selector={"primary": "#a", "fallback": ["#b", "a<<b", " "]})
        result = cap.validate()
        assert result.valid is True
        assert result.warnings == (
            "Fallback selector 'a<<b' may not be valid CSS",
            "Fallback selector ' ' may not be valid CSS",
        )

    def test_duplicate_parameter_names(self):
        """Test repeated parameter names are an error."""
        cap = make_capability(parameters=[
            {"name": "user", "type": "string"},
            {"name": "user", "type": "number"},
        ])
        result = cap.validate()
        assert result.valid is False
        assert result.errors == ("Duplicate parameter name: user",)

    def test_parameter_without_type(self):
        """Test a parameter without a type is an error."""
        cap = make_capability(parameters=[{"name": "user"}])
        assert cap.validate().errors == ("Parameter 'user' type is required",)

    def test_malformed_validation_block_is_reported(self):
        """A decoded constraint block with unusable values fails validate() but not validate_parameters()."""
        cap = make_capability(parameters=[
            {"name": "user", "type": "string", "validation": {"pattern": 5}},
        ])

        assert cap.validate().errors == (
            "Parameter 'user' has invalid validation: pattern must be a string, got 5",
        )
        assert cap.validate_parameters({"user": "alice"}).valid is True

    def test_example_errors_are_folded(self):
        """Test example argument errors are prefixed with the example number."""
        cap = make_capability(examples=[
            CapabilityExample(description="ok", parameters={"user": "a", "password": "b"}),
            CapabilityExample(description="", parameters={"user": 1}),
        ])
        result = cap.validate()

        assert result.valid is False
        assert list(result.errors) == [
            "Example 2: Required parameter 'password' is missing",
            "Example 2: Parameter 'user' expected string, got number",
        ]
        assert result.warnings == ("Example 2 is missing description",)

    def test_example_warnings_are_not_folded(self):
        """Unknown arguments in an example do not surface in the capability report."""
        cap = make_capability(examples=[
            {"description": "extra", "parameters": {"user": "a", "password": "b", "x": 1}},
        ])
        result = cap.validate()
        assert result.valid is True
        assert result.warnings == ()

    def test_unvalidatable_example_is_reported(self):
        """An example whose arguments are not a mapping becomes an error."""
        cap = make_capability(parameters=[], examples=[
            CapabilityExample(description="bad", parameters=["a"]),
            CapabilityExample(description="fine", parameters={"x": 1}),
        ])
        result = cap.validate()
        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Example 1: could not be validated")

    def test_validate_never_raises_for_domain_problems(self):
        """Test many problems at once are reported, not raised."""
        cap = make_capability(
            id="",
            selector={"primary": "", "fallback": [""]},
            parameters=[{"name": "", "type": "weird"}],
        )
        result = cap.validate()
        assert result.valid is False
        assert "Capability ID is required" in result.errors
        assert "Parameter name is required" in result.errors


class TestValidateParameters:
    """Argument validation goes through the capability's schema."""

    def test_valid_arguments(self):
        """Test arguments satisfying the schema."""
        result = make_capability().validate_parameters({"user": "a", "password": "b"})
        assert result.valid is True

    def test_missing_required(self):
        """Test a missing required argument."""
        result = make_capability().validate_parameters({"user": "a"})
        assert result.errors == ("Required parameter 'password' is missing",)

    def test_constraints_apply(self):
        """Test constraint blocks are enforced."""
        cap = make_capability(parameters=[ParameterDefinition(
            name="age",
            type="number",
            validation=ParameterValidation(minimum=18),
        )])
        assert cap.validate_parameters({"age": 12}).errors == ("Parameter 'age' must be at least 18",)


# =============================================================================
# Serialization
# =============================================================================

class TestCapabilitySerialization:
    """Tests for to_dict/from_dict and JSON."""

    def full_capability(self):
        return make_capability(
            selector=SelectorDefinition(
                primary="#login",
                fallback=("button.login",),
                wait=WaitCondition(type="visible", timeout=3000),
                frame="#auth",
                shadow_root=True,
            ),
            parameters=[ParameterDefinition(
                name="user",
                type="string",
                required=True,
                validation=ParameterValidation(min_length=1, pattern="[a-z]+"),
                examples=("alice",),
            )],
            return_type=ReturnTypeDefinition(type="object", schema={"ok": "boolean"}),
            validation=ValidationRules(element_exists=True, element_visible=True),
            timeout=5000,
            retries=2,
            conditions=[ExecutionCondition(type="url", url_pattern="*/login")],
            examples=[CapabilityExample(
                description="log in",
                parameters={"user": "alice"},
                expected_result={"ok": True},
                execution_time=120,
            )],
        )

    def test_round_trip(self):
        """Test from_dict(to_dict()) reproduces the capability."""
        cap = self.full_capability()
        restored = Capability.from_dict(cap.to_dict())
        assert restored == cap
        assert restored.to_dict() == cap.to_dict()

    def test_json_round_trip(self):
        """Test from_json(to_json()) reproduces the capability."""
        cap = self.full_capability()
        assert Capability.from_json(cap.to_json()) == cap

    def test_wire_names(self):
        """Test the wire form uses camelCase keys and Z timestamps."""
        data = self.full_capability().to_dict()
        assert data["createdAt"] == "2025-01-01T12:00:00.000Z"
        assert data["updatedAt"] == "2025-01-02T08:30:15.250Z"
        assert data["selector"]["shadowRoot"] is True
        assert data["returnType"]["type"] == "object"
        assert data["validation"] == {"elementExists": True, "elementVisible": True}
        assert data["conditions"] == [{"type": "url", "urlPattern": "*/login"}]
        assert data["examples"][0]["expectedResult"] == {"ok": True}

    def test_unset_optionals_are_omitted(self):
        """Test unset optional fields are left out."""
        data = make_capability().to_dict()
        for key in ("returnType", "validation", "timeout", "retries"):
            assert key not in data
        assert data["selector"] == "#login"

    def test_bare_selector_stays_a_string(self):
        """Test a string selector decodes as a string."""
        restored = Capability.from_dict(make_capability().to_dict())
        assert restored.selector == "#login"

    def test_missing_timestamp_is_decode_error(self):
        """Test a missing createdAt cannot be decoded."""
        data = make_capability().to_dict()
        del data["createdAt"]
        with pytest.raises(SerializationError) as exc_info:
            Capability.from_dict(data)
        assert "createdAt" in str(exc_info.value)

    def test_non_object_json_is_decode_error(self):
        """Test a JSON array is rejected."""
        with pytest.raises(SerializationError):
            Capability.from_json("[]")

    def test_equality_covers_every_field(self):
        """Test equality compares every field."""
        assert make_capability() == make_capability()
        assert make_capability() != make_capability(timeout=10)
