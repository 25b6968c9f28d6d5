"""
registry.py

A thread-safe keyed registry of port implementations.

Keys are either a type (the port interface) or a plain string. Create one
PortRegistry at startup and pass it to the components that need it; there
is no process-wide instance.
"""

import threading
from typing import Any, Dict, List, Union

from pagecontract.errors import PortNotFoundError
from pagecontract.observability import get_logger

logger = get_logger(__name__)

PortKey = Union[type, str]


def _key_of(port: PortKey) -> str:
    if isinstance(port, str):
        return port
    if isinstance(port, type):
        return f"{port.__module__}.{port.__qualname__}"
    raise TypeError(f"port key must be a type or str, got {type(port).__name__}")


class PortRegistry:
    """
    Maps a port key to a single implementation.

    set() is last-write-wins; get() raises PortNotFoundError for an
    unknown key; clear() drops everything.
    """

    def __init__(self):
        self._ports: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def get(self, port: PortKey) -> Any:
        key = _key_of(port)
        with self._lock:
            try:
                return self._ports[key]
            except KeyError:
                raise PortNotFoundError(key)

    def set(self, port: PortKey, implementation: Any) -> None:
        key = _key_of(port)
        with self._lock:
            self._ports[key] = implementation
        logger.debug("port_registered", port=key)

    def clear(self) -> None:
        with self._lock:
            self._ports.clear()
        logger.debug("ports_cleared")

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._ports)

    def __contains__(self, port: PortKey) -> bool:
        key = _key_of(port)
        with self._lock:
            return key in self._ports

    def __len__(self) -> int:
        with self._lock:
            return len(self._ports)
