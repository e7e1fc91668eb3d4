"""Lifecycle orchestration: readiness probing, deployment checks, operation dispatch."""

from jbossctl.runtime.deployment import DeploymentChecker, DeploymentReport, ModuleCheckResult
from jbossctl.runtime.orchestrator import LifecycleOrchestrator
from jbossctl.runtime.readiness import ReadinessProbe

__all__ = [
	"DeploymentChecker",
	"DeploymentReport",
	"LifecycleOrchestrator",
	"ModuleCheckResult",
	"ReadinessProbe",
]
