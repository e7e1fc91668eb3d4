from typing import List, Optional, Union
from pydantic import BaseModel

class CheckDiagnostic(BaseModel):
    """
    Standardized problem report for a single module or target check.
    """
    subject: str
    error_code: str
    message: str
    severity: str = "error" # 'error', 'warning', 'critical'
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message} (at {self.subject})"


class JBossCtlError(Exception):
    """Base class for every failure raised by jbossctl components."""


class ConfigurationError(JBossCtlError):
    """
    Raised for unknown targets, unsupported operations and invalid configuration
    entries. Nothing has been executed when this is raised.
    """


class CommandError(JBossCtlError):
    """
    Raised when a start/stop command cannot be spawned or its IO fails.
    """
    def __init__(self, message: str, command: Optional[Union[str, List[str]]] = None):
        self.message = message
        if isinstance(command, str):
            command = [command]
        self.command = list(command) if command else []
        super().__init__(message)


class ManagementConnectionError(JBossCtlError):
    """Management endpoint unreachable, or unusable while waiting on it."""


class ManagementQueryError(JBossCtlError):
    """
    Raised by a management connection when a single attribute read or name
    query is rejected by the endpoint.
    """
    def __init__(self, message: str, object_name: str = None):
        self.message = message
        self.object_name = object_name
        ctx = f" for '{object_name}'" if object_name else ""
        super().__init__(f"Management query failed{ctx}: {message}")


class ModuleCheckError(JBossCtlError):
    """A single module's deployment state could not be determined."""

    def __init__(self, message: str, module: str):
        self.message = message
        self.module = module
        super().__init__(f"Module '{module}': {message}")


class UnsupportedModuleKindError(ModuleCheckError):
    """The module file name has no recognized deployable suffix."""
