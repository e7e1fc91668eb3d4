from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from jbossctl.core.log import LogSink
from jbossctl.core.models import ProbeResult
from jbossctl.management.connection import (
    SERVER_OBJECT_NAME,
    STARTED_ATTRIBUTE,
    ManagementConnection,
    ManagementConnector,
)
from jbossctl.utils.diagnostics import ManagementConnectionError, ManagementQueryError

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class _NullSink:
    def log(self, message: str, severity: str = "info") -> None:
        return None


class ReadinessProbe:
    """
    Bounded polling of the server's ``Started`` flag.

    Two independent windows of ``timeout_seconds`` each: one for acquiring a
    management connection (one attempt per interval), then one for sampling the
    flag (one sample per interval).
    """

    def __init__(
        self,
        connector: ManagementConnector,
        interval_seconds: float = 1.0,
        sleep: Optional[Sleep] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.connector = connector
        self.interval_seconds = interval_seconds
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic

    async def connect(
        self,
        address: str,
        port: int,
        timeout_seconds: int,
        sink: Optional[LogSink] = None,
    ) -> ManagementConnection:
        """
        Retry the connection once per interval, up to ``timeout_seconds`` attempts.
        Cancellation propagates and aborts the caller's probe.
        """
        sink = sink or _NullSink()
        last_error: Optional[Exception] = None
        for attempt in range(1, timeout_seconds + 1):
            await self._sleep(self.interval_seconds)
            try:
                return await self.connector.connect(address, port)
            except ManagementConnectionError as exc:
                last_error = exc
                sink.log(f"Connection attempt {attempt}/{timeout_seconds} to {address}:{port} failed.", severity="debug")

        raise ManagementConnectionError(
            f"Unable to get management connection to {address}:{port} in {timeout_seconds} seconds."
        ) from last_error

    async def probe(
        self,
        address: str,
        port: int,
        timeout_seconds: int,
        desired_running: bool = True,
        ignore_connect_errors: bool = False,
        sink: Optional[LogSink] = None,
    ) -> ProbeResult:
        sink = sink or _NullSink()
        started_at = self._clock()
        connection: Optional[ManagementConnection] = None
        samples = 0
        reached = False
        try:
            connection = await self.connect(address, port, timeout_seconds, sink=sink)
            reached, samples = await self._poll(connection, timeout_seconds, desired_running, sink)
        except ManagementConnectionError as exc:
            if not ignore_connect_errors:
                raise
            return ProbeResult(
                desired_running=desired_running,
                reached=False,
                connected=connection is not None,
                elapsed_seconds=self._clock() - started_at,
                samples=samples,
                error=str(exc),
            )
        finally:
            if connection is not None:
                await self.close_quietly(connection, sink)

        return ProbeResult(
            desired_running=desired_running,
            reached=reached,
            connected=True,
            elapsed_seconds=self._clock() - started_at,
            samples=samples,
        )

    async def await_state(
        self,
        address: str,
        port: int,
        timeout_seconds: int,
        desired_running: bool = True,
        ignore_connect_errors: bool = False,
        sink: Optional[LogSink] = None,
    ) -> bool:
        result = await self.probe(
            address,
            port,
            timeout_seconds,
            desired_running=desired_running,
            ignore_connect_errors=ignore_connect_errors,
            sink=sink,
        )
        return result.reached

    async def _poll(
        self,
        connection: ManagementConnection,
        timeout_seconds: int,
        desired_running: bool,
        sink: LogSink,
    ) -> tuple[bool, int]:
        window_start = self._clock()
        samples = 0
        while self._clock() - window_start < timeout_seconds:
            try:
                await self._sleep(self.interval_seconds)
                started = await connection.read_attribute(SERVER_OBJECT_NAME, STARTED_ATTRIBUTE)
            except asyncio.CancelledError:
                self._interrupted(sink)
                return False, samples
            except ManagementQueryError as exc:
                raise ManagementConnectionError(f"Unable to wait: {exc}") from exc
            samples += 1

            if bool(started) == desired_running:
                return True, samples

        return False, samples

    @staticmethod
    def _interrupted(sink: LogSink) -> None:
        # the cancellation is consumed here, so withdraw it from the task
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            task.uncancel()
        sink.log("Interrupted while waiting for server state.", severity="warning")

    @staticmethod
    async def close_quietly(connection: ManagementConnection, sink: LogSink) -> None:
        try:
            await connection.close()
        except Exception as exc:  # close errors never change the result
            sink.log(f"Error while closing management connection: {exc}", severity="debug")
