"""Management endpoint boundary and adapters."""

from jbossctl.management.connection import (
	SERVER_OBJECT_NAME,
	STARTED_ATTRIBUTE,
	STATE_ATTRIBUTE,
	ManagementConnection,
	ManagementConnector,
)
from jbossctl.management.jolokia import JolokiaConnection, JolokiaConnector
from jbossctl.management.mock import (
	MockManagementConnection,
	MockManagementConnector,
	MockManagementServer,
)

__all__ = [
	"SERVER_OBJECT_NAME",
	"STARTED_ATTRIBUTE",
	"STATE_ATTRIBUTE",
	"ManagementConnection",
	"ManagementConnector",
	"JolokiaConnection",
	"JolokiaConnector",
	"MockManagementConnection",
	"MockManagementConnector",
	"MockManagementServer",
]
