from jbossctl.core.log import LogSink, Transcript
from jbossctl.core.models import (
	CheckDeployOperation,
	ModuleKind,
	ModuleSpec,
	OperationType,
	ProbeResult,
	ShutdownOperation,
	StartAndWaitOperation,
	StartOperation,
	TargetDescriptor,
	TargetKind,
	parse_operation,
)
from jbossctl.core.registry import TargetCatalog, TargetRegistry
from jbossctl.execution.command_runner import CommandRunner
from jbossctl.runtime import DeploymentChecker, LifecycleOrchestrator, ReadinessProbe
from jbossctl.utils.diagnostics import (
	CommandError,
	ConfigurationError,
	JBossCtlError,
	ManagementConnectionError,
	ModuleCheckError,
	UnsupportedModuleKindError,
)

__all__ = [
	"CheckDeployOperation",
	"CommandError",
	"CommandRunner",
	"ConfigurationError",
	"DeploymentChecker",
	"JBossCtlError",
	"LifecycleOrchestrator",
	"LogSink",
	"ManagementConnectionError",
	"ModuleCheckError",
	"ModuleKind",
	"ModuleSpec",
	"OperationType",
	"ProbeResult",
	"ReadinessProbe",
	"ShutdownOperation",
	"StartAndWaitOperation",
	"StartOperation",
	"TargetCatalog",
	"TargetDescriptor",
	"TargetKind",
	"TargetRegistry",
	"Transcript",
	"UnsupportedModuleKindError",
	"parse_operation",
]
