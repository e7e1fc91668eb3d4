from __future__ import annotations

from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from jbossctl.core.log import LogSink
from jbossctl.core.models import ModuleKind, ModuleSpec, ServiceState
from jbossctl.management.connection import (
    STATE_ATTRIBUTE,
    ManagementConnection,
    ear_object_name,
    ejb_object_name,
    war_object_pattern,
)
from jbossctl.runtime.readiness import ReadinessProbe
from jbossctl.utils.diagnostics import (
    CheckDiagnostic,
    JBossCtlError,
    ModuleCheckError,
    UnsupportedModuleKindError,
)


class ModuleCheckResult(BaseModel):
    """Deployment verdict for one module."""

    module: ModuleSpec
    healthy: bool
    state: Optional[int] = None
    diagnostic: Optional[CheckDiagnostic] = None


class DeploymentReport(BaseModel):
    """Per-module verdicts in request order; healthy only if every module is."""

    results: List[ModuleCheckResult] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all(result.healthy for result in self.results)

    @property
    def diagnostics(self) -> List[CheckDiagnostic]:
        return [r.diagnostic for r in self.results if r.diagnostic is not None]

    def __bool__(self) -> bool:
        return self.healthy


def _state_label(state: Optional[int]) -> str:
    if state is None:
        return "unknown"
    try:
        return ServiceState(state).name
    except ValueError:
        return str(state)


class DeploymentChecker:
    """
    Verifies that deployed modules report the STARTED service state.

    The endpoint must already be reachable: connection failures are not
    swallowed. Failures while checking one module only mark that module.
    """

    def __init__(self, probe: ReadinessProbe) -> None:
        self.probe = probe
        self._handlers: Dict[ModuleKind, Callable[[ManagementConnection, ModuleSpec], Awaitable[int]]] = {
            ModuleKind.EAR: self._ear_state,
            ModuleKind.EJB: self._ejb_state,
            ModuleKind.WAR: self._war_state,
        }

    async def inspect(
        self,
        address: str,
        port: int,
        timeout_seconds: int,
        modules: Sequence[ModuleSpec],
        sink: LogSink,
    ) -> DeploymentReport:
        connection = await self.probe.connect(address, port, timeout_seconds, sink=sink)
        try:
            report = DeploymentReport()
            for module in modules:
                result = await self.check_module(connection, module)
                self._log_result(result, sink)
                report.results.append(result)
            return report
        finally:
            await self.probe.close_quietly(connection, sink)

    async def check_modules(
        self,
        address: str,
        port: int,
        timeout_seconds: int,
        modules: Sequence[ModuleSpec],
        sink: LogSink,
    ) -> bool:
        report = await self.inspect(address, port, timeout_seconds, modules, sink)
        return report.healthy

    async def check_module(self, connection: ManagementConnection, module: ModuleSpec) -> ModuleCheckResult:
        handler = self._handlers.get(module.kind)
        try:
            if handler is None:
                raise UnsupportedModuleKindError("unsupported module type", module.name)
            state = await handler(connection, module)
        except UnsupportedModuleKindError:
            return ModuleCheckResult(
                module=module,
                healthy=False,
                diagnostic=CheckDiagnostic(
                    subject=module.name,
                    error_code="ERR_UNSUPPORTED_MODULE",
                    message=f"Unsupported module type: '{module.name}'.",
                    suggestion="Use a module name ending with .ear, -ejb.jar or .war.",
                ),
            )
        except (JBossCtlError, OSError, TypeError, ValueError) as exc:
            return ModuleCheckResult(
                module=module,
                healthy=False,
                diagnostic=CheckDiagnostic(
                    subject=module.name,
                    error_code="ERR_MODULE_CHECK",
                    message=str(exc),
                ),
            )

        healthy = state == ServiceState.STARTED
        diagnostic = None
        if not healthy:
            diagnostic = CheckDiagnostic(
                subject=module.name,
                error_code="ERR_NOT_STARTED",
                message=f"Module '{module.name}' is in state {_state_label(state)}.",
                severity="warning",
            )
        return ModuleCheckResult(module=module, healthy=healthy, state=state, diagnostic=diagnostic)

    async def _ear_state(self, connection: ManagementConnection, module: ModuleSpec) -> int:
        return self._as_state(await connection.read_attribute(ear_object_name(module.name), STATE_ATTRIBUTE), module)

    async def _ejb_state(self, connection: ManagementConnection, module: ModuleSpec) -> int:
        return self._as_state(await connection.read_attribute(ejb_object_name(module.name), STATE_ATTRIBUTE), module)

    async def _war_state(self, connection: ManagementConnection, module: ModuleSpec) -> int:
        pattern = war_object_pattern(module.name)
        names = await connection.query_names(pattern)
        if not names:
            raise ModuleCheckError("no web deployment found", module.name)
        if len(names) > 1:
            raise ModuleCheckError(f"ambiguous web deployment, {len(names)} matches for '{pattern}'", module.name)
        return self._as_state(await connection.read_attribute(names[0], STATE_ATTRIBUTE), module)

    @staticmethod
    def _as_state(value: object, module: ModuleSpec) -> int:
        if isinstance(value, bool) or value is None:
            raise ModuleCheckError(f"unexpected State value {value!r}", module.name)
        return int(value)

    @staticmethod
    def _log_result(result: ModuleCheckResult, sink: LogSink) -> None:
        name = result.module.name
        if result.healthy:
            sink.log(f"Module '{name}' is deployed.", severity="success")
        elif result.diagnostic is not None and result.diagnostic.error_code == "ERR_UNSUPPORTED_MODULE":
            sink.log(f"Unsupported type of module '{name}'.", severity="error")
        else:
            reason = result.diagnostic.message if result.diagnostic else "not deployed"
            sink.log(f"Module '{name}' is NOT deployed: {reason}", severity="error")
