from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from jbossctl.config.settings import ManagementSettings
from jbossctl.utils.diagnostics import ManagementConnectionError, ManagementQueryError


class JolokiaConnection:
    """
    Management connection speaking the Jolokia JSON protocol (JMX over HTTP).
    Every request is a POST of one JSON command to the agent's base URL.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def request(self, payload: Dict[str, Any]) -> Any:
        object_name = payload.get("mbean")
        try:
            response = await self.client.post("", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise ManagementQueryError(str(exc), object_name) from exc
        except ValueError as exc:
            raise ManagementQueryError(f"Invalid JSON response: {exc}", object_name) from exc

        if not isinstance(body, dict):
            raise ManagementQueryError("Unexpected response payload.", object_name)

        status = body.get("status", 200)
        if status != 200:
            error = body.get("error") or body.get("error_type") or f"status {status}"
            raise ManagementQueryError(str(error), object_name)
        return body.get("value")

    async def version(self) -> Dict[str, Any]:
        value = await self.request({"type": "version"})
        return value if isinstance(value, dict) else {}

    async def read_attribute(self, object_name: str, attribute: str) -> Any:
        return await self.request({"type": "read", "mbean": object_name, "attribute": attribute})

    async def query_names(self, pattern: str) -> List[str]:
        value = await self.request({"type": "search", "mbean": pattern})
        if value is None:
            return []
        if not isinstance(value, list):
            raise ManagementQueryError("Search returned a non-list value.", pattern)
        return [str(name) for name in value]

    async def close(self) -> None:
        await self.client.aclose()


class JolokiaConnector:
    """Opens JolokiaConnection handles for ``address:port``."""

    def __init__(
        self,
        settings: Optional[ManagementSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or ManagementSettings()
        self.transport = transport

    def base_url(self, address: str, port: int) -> str:
        path = "/" + self.settings.path.strip("/") + "/"
        return f"{self.settings.scheme}://{address}:{port}{path}"

    async def connect(self, address: str, port: int) -> JolokiaConnection:
        auth = None
        if self.settings.username:
            auth = httpx.BasicAuth(self.settings.username, self.settings.password or "")

        client = httpx.AsyncClient(
            base_url=self.base_url(address, port),
            auth=auth,
            timeout=self.settings.request_timeout_seconds,
            verify=self.settings.verify_tls,
            transport=self.transport,
        )
        connection = JolokiaConnection(client)
        try:
            await connection.version()
        except ManagementQueryError as exc:
            await connection.close()
            raise ManagementConnectionError(
                f"Unable to reach management endpoint {address}:{port}: {exc.message}"
            ) from exc
        return connection
