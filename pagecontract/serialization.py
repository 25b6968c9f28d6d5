"""
serialization.py

Shared codec for the contract wire format.

Wire Format Invariants:
- Plain JSON-compatible structures only
- camelCase field names
- Timestamps as ISO-8601 UTC strings with millisecond precision
  (``2025-01-01T12:00:00.000Z``)
- Optional fields that are unset are omitted, never written as null
- Name-keyed maps keep their insertion order
"""

import copy
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pagecontract.errors import SerializationError


# =============================================================================
# Timestamps
# =============================================================================

def now_utc() -> datetime:
    """
    Current time as an aware UTC datetime, truncated to milliseconds.

    Truncation keeps in-memory values equal to their decoded wire form.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime as ISO-8601 UTC. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any, field_name: str = "timestamp") -> datetime:
    """Decode an ISO-8601 string (or pass through a datetime) as aware UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise SerializationError(str(e), field_name=field_name)
    elif value is None:
        raise SerializationError("value is required", field_name=field_name)
    else:
        raise SerializationError(
            f"expected ISO-8601 string, got {type(value).__name__}",
            field_name=field_name,
        )

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.replace(microsecond=(parsed.microsecond // 1000) * 1000)


# =============================================================================
# JSON Helpers
# =============================================================================

def deep_copy_json(value: Any) -> Any:
    """Copy a plain structure so callers never share mutable state with us."""
    return copy.deepcopy(value)


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove keys whose value is None, keeping order."""
    return {k: v for k, v in data.items() if v is not None}


def require_mapping(value: Any, field_name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SerializationError(
            f"expected object, got {type(value).__name__}",
            field_name=field_name,
        )
    return value


def optional_mapping(value: Any, field_name: str) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return require_mapping(value, field_name)


def loads_document(text: Union[str, bytes], field_name: str = "document") -> Dict[str, Any]:
    """Parse JSON text into a dict, raising SerializationError on bad input."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"invalid JSON: {e}", field_name=field_name)
    return require_mapping(data, field_name)


def dumps_document(data: Dict[str, Any], *, indent: Optional[int] = None) -> str:
    """Encode a wire dict as JSON text. Key order is preserved."""
    return json.dumps(data, indent=indent, ensure_ascii=False)
