"""Management endpoint boundary: connecting, reading attributes, querying names."""

from __future__ import annotations

from typing import Any, List, Protocol

SERVER_OBJECT_NAME = "jboss.system:type=Server"
STARTED_ATTRIBUTE = "Started"
STATE_ATTRIBUTE = "State"


def ear_object_name(module: str) -> str:
    return f"jboss.j2ee:service=EARDeployment,url='{module}'"


def ejb_object_name(module: str) -> str:
    return f"jboss.j2ee:module={module},service=EjbModule"


def war_object_pattern(module: str) -> str:
    context = module[: -len(".war")] if module.lower().endswith(".war") else module
    return f"jboss.web.deployment:war=/{context},*"


class ManagementConnection(Protocol):
    """An open handle on a server's management endpoint."""

    async def read_attribute(self, object_name: str, attribute: str) -> Any:
        ...

    async def query_names(self, pattern: str) -> List[str]:
        ...

    async def close(self) -> None:
        ...


class ManagementConnector(Protocol):
    """
    Opens connections to ``address:port``. Implementations raise
    ``ManagementConnectionError`` when the endpoint cannot be reached.
    """

    async def connect(self, address: str, port: int) -> ManagementConnection:
        ...
