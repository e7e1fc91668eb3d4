from __future__ import annotations

import re
from enum import Enum, IntEnum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

_NAME_PATTERN = re.compile(r"^\S(?:.*\S)?$")
_MODULE_SEPARATORS = re.compile(r"[,\s]+")


class TargetKind(str, Enum):
    """Where a managed server lives relative to the controlling host."""

    LOCAL = "local"
    REMOTE = "remote"


class TargetDescriptor(BaseModel):
    """
    One manageable application-server instance.

    Local targets are driven through the scripts in ``install_directory/bin``;
    remote targets through opaque start/stop commands. Exactly one of the two
    payloads is populated, selected by ``kind``.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: TargetKind
    name: str
    address: str = "127.0.0.1"
    management_port: int = Field(gt=1024, le=65535)
    timeout_seconds: int = Field(default=60, ge=0)

    install_directory: Optional[Path] = None
    start_command: Optional[str] = None
    stop_command: Optional[str] = None

    @field_validator("name", "address")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not _NAME_PATTERN.fullmatch(value or ""):
            raise ValueError("must be a non-blank value without surrounding whitespace")
        return value

    @model_validator(mode="after")
    def _payload_matches_kind(self) -> "TargetDescriptor":
        if self.kind == TargetKind.LOCAL:
            if self.install_directory is None:
                raise ValueError("Local targets require 'install_directory'.")
            if self.start_command is not None or self.stop_command is not None:
                raise ValueError("Local targets cannot define 'start_command' or 'stop_command'.")
        else:
            if not (self.start_command and self.start_command.strip()):
                raise ValueError("Remote targets require 'start_command'.")
            if not (self.stop_command and self.stop_command.strip()):
                raise ValueError("Remote targets require 'stop_command'.")
            if self.install_directory is not None:
                raise ValueError("Remote targets cannot define 'install_directory'.")
        return self

    @classmethod
    def local(
        cls,
        name: str,
        install_directory: Path | str,
        management_port: int,
        address: str = "127.0.0.1",
        timeout_seconds: int = 60,
    ) -> "TargetDescriptor":
        return cls(
            kind=TargetKind.LOCAL,
            name=name,
            address=address,
            management_port=management_port,
            timeout_seconds=timeout_seconds,
            install_directory=Path(install_directory),
        )

    @classmethod
    def remote(
        cls,
        name: str,
        start_command: str,
        stop_command: str,
        management_port: int,
        address: str = "127.0.0.1",
        timeout_seconds: int = 60,
    ) -> "TargetDescriptor":
        return cls(
            kind=TargetKind.REMOTE,
            name=name,
            address=address,
            management_port=management_port,
            timeout_seconds=timeout_seconds,
            start_command=start_command,
            stop_command=stop_command,
        )

    @property
    def is_local(self) -> bool:
        return self.kind == TargetKind.LOCAL

    @property
    def endpoint(self) -> str:
        return f"{self.address}:{self.management_port}"

    def __str__(self) -> str:
        return f"{self.name} ({self.kind.value}, {self.endpoint})"


class OperationType(str, Enum):
    """Operations a pipeline step can request."""

    START_AND_WAIT = "start_and_wait"
    START = "start"
    SHUTDOWN = "shutdown"
    CHECK_DEPLOY = "check_deploy"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class _Operation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class StartOperation(_Operation):
    """Launch the server and return without waiting for readiness."""

    type: Literal["start"] = "start"
    extra_properties: Optional[str] = None

    @field_validator("extra_properties")
    @classmethod
    def _normalize_properties(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)


class StartAndWaitOperation(StartOperation):
    """Launch the server and block until it reports itself started."""

    type: Literal["start_and_wait"] = "start_and_wait"


class ShutdownOperation(_Operation):
    """Stop the server if it is running."""

    type: Literal["shutdown"] = "shutdown"


class CheckDeployOperation(_Operation):
    """Verify the deployment state of a list of modules."""

    type: Literal["check_deploy"] = "check_deploy"
    modules: List[str] = Field(default_factory=list)
    stop_on_check_failure: bool = False

    @field_validator("modules", mode="before")
    @classmethod
    def _split_module_text(cls, value):
        if isinstance(value, str):
            return [item for item in _MODULE_SEPARATORS.split(value) if item]
        return value

    @property
    def module_specs(self) -> List["ModuleSpec"]:
        return [ModuleSpec.from_name(name) for name in self.modules]


OperationRequest = Annotated[
    Union[StartOperation, StartAndWaitOperation, ShutdownOperation, CheckDeployOperation],
    Field(discriminator="type"),
]

_OPERATION_ADAPTER: TypeAdapter = TypeAdapter(OperationRequest)


def parse_operation(data: dict) -> Union[StartOperation, StartAndWaitOperation, ShutdownOperation, CheckDeployOperation]:
    """Validate a raw mapping (``{"type": "start", ...}``) into an operation variant."""
    return _OPERATION_ADAPTER.validate_python(data)


class ModuleKind(str, Enum):
    """Deployable unit kinds distinguished by file name suffix."""

    EAR = "ear"
    EJB = "ejb"
    WAR = "war"
    UNKNOWN = "unknown"


_SUFFIX_KINDS = (
    ("-ejb.jar", ModuleKind.EJB),
    (".ear", ModuleKind.EAR),
    (".war", ModuleKind.WAR),
)


def infer_module_kind(name: str) -> ModuleKind:
    lowered = name.lower()
    for suffix, kind in _SUFFIX_KINDS:
        if lowered.endswith(suffix) and len(lowered) > len(suffix):
            return kind
    return ModuleKind.UNKNOWN


class ModuleSpec(BaseModel):
    """A deployable module identifier and its inferred kind."""
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ModuleKind

    @classmethod
    def from_name(cls, name: str) -> "ModuleSpec":
        return cls(name=name, kind=infer_module_kind(name))

    @classmethod
    def parse_list(cls, text: Optional[str]) -> List["ModuleSpec"]:
        """Parse comma and/or whitespace separated module names, order preserved."""
        if not text:
            return []
        return [cls.from_name(item) for item in _MODULE_SEPARATORS.split(text) if item]


class ServiceState(IntEnum):
    """JBoss service lifecycle codes reported through the ``State`` attribute."""

    STOPPED = 0
    STOPPING = 1
    STARTING = 2
    STARTED = 3
    FAILED = 4
    DESTROYED = 5
    CREATED = 6
    UNREGISTERED = 7
    REGISTERED = 8


class ProbeResult(BaseModel):
    """Outcome of one readiness probe."""

    desired_running: bool
    reached: bool
    connected: bool
    elapsed_seconds: float = 0.0
    samples: int = 0
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.reached
