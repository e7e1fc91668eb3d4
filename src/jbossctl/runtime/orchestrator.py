from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional, Union

from jbossctl.config.settings import ControlConfig, ControlSettings
from jbossctl.core.log import LogSink, fatal
from jbossctl.core.models import (
    CheckDeployOperation,
    OperationType,
    ShutdownOperation,
    StartAndWaitOperation,
    StartOperation,
    TargetDescriptor,
)
from jbossctl.core.registry import TargetCatalog, TargetRegistry
from jbossctl.execution.command_runner import CommandRunner
from jbossctl.management.jolokia import JolokiaConnector
from jbossctl.runtime.deployment import DeploymentChecker
from jbossctl.runtime.readiness import ReadinessProbe
from jbossctl.utils.diagnostics import JBossCtlError, ManagementConnectionError

Operation = Union[StartOperation, StartAndWaitOperation, ShutdownOperation, CheckDeployOperation]
Handler = Callable[[TargetDescriptor, Operation, LogSink], Awaitable[bool]]


class LifecycleOrchestrator:
    """
    Runs one requested operation against one configured target.

    The target catalog is a snapshot taken when the run begins (or handed in by
    the caller); configuration changes only affect later runs. Every outcome is
    reported as a boolean plus the narration written to the sink.
    """

    def __init__(
        self,
        targets: Union[TargetRegistry, TargetCatalog, None],
        command_runner: CommandRunner,
        probe: ReadinessProbe,
        checker: Optional[DeploymentChecker] = None,
        settings: Optional[ControlSettings] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.targets = targets
        self.command_runner = command_runner
        self.probe = probe
        self.checker = checker or DeploymentChecker(probe)
        self.settings = settings or ControlSettings()
        self._clock = clock or time.monotonic
        self._handlers: Dict[OperationType, Handler] = {
            OperationType.START: self._start,
            OperationType.START_AND_WAIT: self._start_and_wait,
            OperationType.SHUTDOWN: self._shutdown,
            OperationType.CHECK_DEPLOY: self._check_deploy,
        }

    @classmethod
    def from_config(cls, config: ControlConfig, targets: Union[TargetRegistry, TargetCatalog, None]) -> "LifecycleOrchestrator":
        """Wire the default subprocess launcher and Jolokia endpoint adapter."""
        probe = ReadinessProbe(
            JolokiaConnector(config.management),
            interval_seconds=config.settings.poll_interval_seconds,
        )
        runner = CommandRunner(
            shutdown_url_scheme=config.settings.shutdown_url_scheme,
            start_stderr_path=config.settings.start_stderr_log,
        )
        return cls(targets, runner, probe, settings=config.settings)

    def execute(
        self,
        target_name: str,
        request: Operation,
        sink: LogSink,
        targets: Optional[TargetCatalog] = None,
    ) -> bool:
        """Synchronous entry point for hosts without an event loop."""
        return asyncio.run(self.run(target_name, request, sink, targets=targets))

    async def run(
        self,
        target_name: str,
        request: Operation,
        sink: LogSink,
        targets: Optional[TargetCatalog] = None,
    ) -> bool:
        catalog = targets if targets is not None else self._snapshot()
        target = catalog.find_target(target_name) if catalog is not None else None
        if target is None:
            fatal(sink, f"Wrong configuration of the step: unknown server '{target_name}'.")
            return False

        operation_type = self._operation_type(request)
        handler = self._handlers.get(operation_type) if operation_type is not None else None
        if handler is None:
            fatal(sink, f"Unexpected type of operation: {getattr(request, 'type', request)!r}.")
            return False

        label = operation_type.value.upper()
        sink.log(f"Operation {label} requested for JBoss AS {target}.")
        started_at = self._clock()
        try:
            result = await handler(target, request, sink)
        except JBossCtlError as exc:
            fatal(sink, f"Operation {label} failed: {exc}{self._cause(exc)}")
            result = False
        except Exception as exc:
            fatal(sink, f"Operation {label} failed with unexpected error {type(exc).__name__}: {exc}")
            result = False

        elapsed = self._clock() - started_at
        outcome = "finished successfully" if result else "failed"
        sink.log(f"Operation {label} {outcome} in {elapsed:.1f}s.", severity="success" if result else "error")
        return result

    async def _start(self, target: TargetDescriptor, request: StartOperation, sink: LogSink) -> bool:
        if await self._is_running(target, sink):
            sink.log("JBoss AS already started.")
            return True
        return self._launch(target, request.extra_properties, sink)

    async def _start_and_wait(self, target: TargetDescriptor, request: StartAndWaitOperation, sink: LogSink) -> bool:
        if await self._is_running(target, sink):
            sink.log("JBoss AS already started.")
            return True
        if not self._launch(target, request.extra_properties, sink):
            return False

        sink.log(f"Waiting up to {target.timeout_seconds}s for JBoss AS '{target.name}' to start...")
        result = await self.probe.probe(
            target.address,
            target.management_port,
            target.timeout_seconds,
            desired_running=True,
            ignore_connect_errors=False,
            sink=sink,
        )
        if result.reached:
            sink.log(f"JBoss AS started! ({result.elapsed_seconds:.1f}s)", severity="success")
            return True
        sink.log("JBoss AS is not started before timeout has expired!", severity="error")
        return False

    async def _shutdown(self, target: TargetDescriptor, request: ShutdownOperation, sink: LogSink) -> bool:
        if not await self._is_running(target, sink):
            sink.log("JBoss AS is not working.")
            return True
        return await self._stop(target, sink)

    async def _check_deploy(self, target: TargetDescriptor, request: CheckDeployOperation, sink: LogSink) -> bool:
        if not await self._is_running(target, sink):
            fatal(sink, f"JBoss AS '{target.name}' is not reachable, deployment cannot be checked.")
            return False

        modules = request.module_specs
        if not modules:
            sink.log("No modules given, nothing to check.", severity="warning")
            return True

        sink.log(f"Checking deployment of {len(modules)} module(s)...")
        try:
            report = await self.checker.inspect(
                target.address,
                target.management_port,
                target.timeout_seconds,
                modules,
                sink,
            )
        except ManagementConnectionError as exc:
            sink.log(f"Deployment check failed: {exc}", severity="error")
            return await self._failed_check(target, request, sink)

        if report.healthy:
            sink.log(f"All {len(modules)} module(s) deployed.", severity="success")
            return True

        failed = sum(1 for r in report.results if not r.healthy)
        sink.log(f"Deployment check failed: {failed} of {len(modules)} module(s) not deployed.", severity="error")
        return await self._failed_check(target, request, sink)

    async def _failed_check(self, target: TargetDescriptor, request: CheckDeployOperation, sink: LogSink) -> bool:
        if request.stop_on_check_failure:
            sink.log(f"Stopping JBoss AS '{target.name}' after failed deployment check.", severity="warning")
            if not await self._stop(target, sink):
                sink.log("Stop after failed deployment check did not succeed.", severity="warning")
        return False

    async def _is_running(self, target: TargetDescriptor, sink: LogSink) -> bool:
        sink.log(f"Checking state of JBoss AS '{target.name}' at {target.endpoint}...")
        result = await self.probe.probe(
            target.address,
            target.management_port,
            self.settings.precheck_timeout_seconds,
            desired_running=True,
            ignore_connect_errors=True,
            sink=sink,
        )
        sink.log(f"JBoss AS '{target.name}' is {'running' if result.reached else 'not running'}.")
        return result.reached

    def _launch(self, target: TargetDescriptor, properties: Optional[str], sink: LogSink) -> bool:
        sink.log(f"Starting JBoss AS '{target.name}'...")
        return self.command_runner.start(target, properties, sink)

    async def _stop(self, target: TargetDescriptor, sink: LogSink) -> bool:
        sink.log(f"Stopping JBoss AS '{target.name}'...")
        return await asyncio.to_thread(self.command_runner.stop, target, sink)

    def _snapshot(self) -> Optional[TargetCatalog]:
        if isinstance(self.targets, TargetRegistry):
            return self.targets.snapshot()
        return self.targets

    @staticmethod
    def _operation_type(request: object) -> Optional[OperationType]:
        try:
            return OperationType(getattr(request, "type", None))
        except ValueError:
            return None

    @staticmethod
    def _cause(exc: BaseException) -> str:
        cause = exc.__cause__
        if cause is None:
            return ""
        return f" (caused by {type(cause).__name__}: {cause})"
