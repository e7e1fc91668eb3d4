from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any, Deque, Dict, List, Tuple

from jbossctl.management.connection import SERVER_OBJECT_NAME, STARTED_ATTRIBUTE
from jbossctl.utils.diagnostics import ManagementConnectionError, ManagementQueryError


@dataclass
class MockManagementServer:
    """
    In-memory management endpoint for local dry runs and tests.

    ``attributes`` maps ``(object_name, attribute)`` to a value; a list value is
    consumed one item per read, the last item repeating. Object names returned
    by ``query_names`` are the distinct object names of ``attributes``.
    """

    reachable: bool = True
    failed_connects: int = 0
    attributes: Dict[Tuple[str, str], Any] = field(default_factory=dict)
    connect_calls: int = 0
    reads: List[Tuple[str, str]] = field(default_factory=list)
    queries: List[str] = field(default_factory=list)
    open_connections: int = 0

    _sequences: Dict[Tuple[str, str], Deque[Any]] = field(default_factory=dict, init=False, repr=False)

    def set_started(self, started: Any) -> None:
        self.set_attribute(SERVER_OBJECT_NAME, STARTED_ATTRIBUTE, started)

    def set_attribute(self, object_name: str, attribute: str, value: Any) -> None:
        self.attributes[(object_name, attribute)] = value
        self._sequences.pop((object_name, attribute), None)

    def read(self, object_name: str, attribute: str) -> Any:
        key = (object_name, attribute)
        self.reads.append(key)
        if key not in self.attributes:
            raise ManagementQueryError("InstanceNotFoundException", object_name)

        value = self.attributes[key]
        if not isinstance(value, list):
            return value

        sequence = self._sequences.setdefault(key, deque(value))
        if len(sequence) > 1:
            return sequence.popleft()
        return sequence[0]

    def query(self, pattern: str) -> List[str]:
        self.queries.append(pattern)
        names = dict.fromkeys(name for name, _ in self.attributes)
        if pattern.endswith(",*"):
            # property-list wildcard: the listed keys must match, any others may follow
            prefix = pattern[:-2]
            return [name for name in names if name == prefix or name.startswith(prefix + ",")]
        return [name for name in names if fnmatchcase(name, pattern)]


class MockManagementConnection:
    def __init__(self, server: MockManagementServer) -> None:
        self.server = server
        self.closed = False

    async def read_attribute(self, object_name: str, attribute: str) -> Any:
        return self.server.read(object_name, attribute)

    async def query_names(self, pattern: str) -> List[str]:
        return self.server.query(pattern)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.server.open_connections -= 1


class MockManagementConnector:
    """Connector handing out connections to a single MockManagementServer."""

    def __init__(self, server: MockManagementServer | None = None) -> None:
        self.server = server or MockManagementServer()

    async def connect(self, address: str, port: int) -> MockManagementConnection:
        self.server.connect_calls += 1
        if not self.server.reachable:
            raise ManagementConnectionError(f"Connection refused: {address}:{port}")
        if self.server.failed_connects > 0:
            self.server.failed_connects -= 1
            raise ManagementConnectionError(f"Naming service not ready: {address}:{port}")

        self.server.open_connections += 1
        return MockManagementConnection(self.server)
