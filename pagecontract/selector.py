"""
selector.py

Element locators for capabilities.

A selector is either a bare CSS selector string or a SelectorDefinition
with a primary selector, ordered fallbacks, and wait/frame hints.
Resolving selectors against a live page is the job of an execution
engine; this module only models them and offers a permissive
well-formedness heuristic.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from pagecontract.serialization import drop_none, require_mapping


class WaitType(Enum):
    VISIBLE = "visible"
    PRESENT = "present"
    HIDDEN = "hidden"
    ENABLED = "enabled"
    TEXT = "text"
    CUSTOM = "custom"


@dataclass(frozen=True)
class WaitCondition:
    """What an executor should wait for before using the element."""
    type: str
    timeout: Optional[float] = None
    text: Optional[str] = None
    custom_condition: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, WaitType):
            object.__setattr__(self, "type", self.type.value)

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "type": self.type,
            "timeout": self.timeout,
            "text": self.text,
            "customCondition": self.custom_condition,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaitCondition":
        data = require_mapping(data, "selector.wait")
        return cls(
            type=data.get("type") or "",
            timeout=data.get("timeout"),
            text=data.get("text"),
            custom_condition=data.get("customCondition"),
        )


@dataclass(frozen=True)
class SelectorDefinition:
    """
    A primary selector with ordered fallbacks.

    Fallbacks are tried first-match-wins by the executor.
    """
    primary: str
    fallback: Tuple[str, ...] = ()
    wait: Optional[WaitCondition] = None
    validator: Optional[str] = None
    frame: Optional[str] = None
    shadow_root: Optional[bool] = None

    def __post_init__(self):
        object.__setattr__(self, "fallback", tuple(self.fallback or ()))
        if isinstance(self.wait, dict):
            object.__setattr__(self, "wait", WaitCondition.from_dict(self.wait))

    def all(self) -> Tuple[str, ...]:
        return (self.primary,) + self.fallback

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "primary": self.primary,
            "fallback": list(self.fallback) if self.fallback else None,
            "wait": self.wait.to_dict() if self.wait else None,
            "validator": self.validator,
            "frame": self.frame,
            "shadowRoot": self.shadow_root,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorDefinition":
        data = require_mapping(data, "selector")
        wait = data.get("wait")
        return cls(
            primary=data.get("primary") or "",
            fallback=tuple(data.get("fallback") or ()),
            wait=WaitCondition.from_dict(wait) if wait is not None else None,
            validator=data.get("validator"),
            frame=data.get("frame"),
            shadow_root=data.get("shadowRoot"),
        )


Selector = Union[str, SelectorDefinition]


def coerce_selector(value: Union[str, SelectorDefinition, Dict[str, Any], None]) -> Selector:
    """Normalize a selector; bare strings stay strings so they round-trip."""
    if value is None:
        return ""
    if isinstance(value, (str, SelectorDefinition)):
        return value
    return SelectorDefinition.from_dict(value)


def selector_to_wire(selector: Selector) -> Union[str, Dict[str, Any]]:
    if isinstance(selector, SelectorDefinition):
        return selector.to_dict()
    return selector


def primary_of(selector: Selector) -> str:
    return selector if isinstance(selector, str) else selector.primary


def fallbacks_of(selector: Selector) -> Tuple[str, ...]:
    return () if isinstance(selector, str) else selector.fallback


def looks_like_selector(selector: Any, suspicious_tokens: Sequence[str] = ("><", "<<")) -> bool:
    """
    Heuristic well-formedness check.

    Only catches obvious garbage: blank strings and markup fragments.
    Real validity can only be decided against a live DOM.
    """
    if not isinstance(selector, str) or not selector.strip():
        return False
    return not any(token in selector for token in suspicious_tokens)
