import asyncio

import pytest

from jbossctl.management.connection import SERVER_OBJECT_NAME, STARTED_ATTRIBUTE
from jbossctl.management.mock import MockManagementConnection, MockManagementConnector
from jbossctl.runtime.readiness import ReadinessProbe
from jbossctl.utils.diagnostics import ManagementConnectionError


@pytest.mark.anyio
async def test_probe_reaches_running_state_after_a_few_samples(server, probe, clock):
    server.set_started([False, False, True])

    result = await probe.probe("127.0.0.1", 1099, 10, desired_running=True)

    assert result.reached is True
    assert result.connected is True
    assert result.samples == 3
    # one connect attempt plus three samples, one interval each
    assert clock.sleeps == [1.0, 1.0, 1.0, 1.0]
    assert server.open_connections == 0


@pytest.mark.anyio
async def test_probe_reports_not_reached_when_window_expires(server, probe, clock):
    server.set_started(False)

    result = await probe.probe("127.0.0.1", 1099, 5, desired_running=True)

    assert result.reached is False
    assert result.samples == 5
    assert server.reads.count((SERVER_OBJECT_NAME, STARTED_ATTRIBUTE)) == 5
    assert server.open_connections == 0


@pytest.mark.anyio
async def test_probe_can_wait_for_stopped_state(server, probe):
    server.set_started([True, False])

    assert await probe.await_state("127.0.0.1", 1099, 5, desired_running=False) is True


@pytest.mark.anyio
async def test_connect_retries_once_per_interval(server, probe, clock):
    server.failed_connects = 2
    server.set_started(True)

    result = await probe.probe("127.0.0.1", 1099, 5)

    assert result.reached is True
    assert server.connect_calls == 3
    assert clock.sleeps[:3] == [1.0, 1.0, 1.0]


@pytest.mark.anyio
async def test_unreachable_endpoint_propagates_when_not_ignored(server, probe, transcript):
    server.reachable = False

    with pytest.raises(ManagementConnectionError, match="in 3 seconds"):
        await probe.probe("10.0.0.1", 9999, 3, sink=transcript)

    assert server.connect_calls == 3


@pytest.mark.anyio
async def test_unreachable_endpoint_is_negative_when_ignored(server, probe):
    server.reachable = False

    result = await probe.probe("10.0.0.1", 9999, 3, ignore_connect_errors=True)

    assert result.reached is False
    assert result.connected is False
    assert "Unable to get management connection" in result.error


@pytest.mark.anyio
async def test_zero_timeout_never_connects(server, probe):
    server.set_started(True)

    assert await probe.await_state("127.0.0.1", 1099, 0, ignore_connect_errors=True) is False
    assert server.connect_calls == 0


@pytest.mark.anyio
async def test_read_failure_while_polling_becomes_connection_error(server, probe):
    # no Started attribute registered: every read fails

    with pytest.raises(ManagementConnectionError, match="Unable to wait"):
        await probe.probe("127.0.0.1", 1099, 5)

    assert server.open_connections == 0


@pytest.mark.anyio
async def test_read_failure_is_swallowed_when_ignoring_errors(server, probe):
    result = await probe.probe("127.0.0.1", 1099, 5, ignore_connect_errors=True)

    assert result.reached is False
    assert result.connected is True
    assert server.open_connections == 0


@pytest.mark.anyio
async def test_interrupt_while_polling_is_a_negative_result(server, clock, transcript):
    server.set_started(False)
    calls = []

    async def sleep(seconds):
        calls.append(seconds)
        if len(calls) == 3:
            raise asyncio.CancelledError()
        await clock.sleep(seconds)

    probe = ReadinessProbe(MockManagementConnector(server), sleep=sleep, clock=clock)

    result = await probe.probe("127.0.0.1", 1099, 10, sink=transcript)

    assert result.reached is False
    assert "Interrupted while waiting for server state." in transcript.messages("warning")
    assert server.open_connections == 0


@pytest.mark.anyio
async def test_interrupt_while_connecting_propagates(server, clock):
    async def sleep(seconds):
        raise asyncio.CancelledError()

    probe = ReadinessProbe(MockManagementConnector(server), sleep=sleep, clock=clock)

    with pytest.raises(asyncio.CancelledError):
        await probe.probe("127.0.0.1", 1099, 10, ignore_connect_errors=True)

    assert server.connect_calls == 0


class InterruptedReads(MockManagementConnection):
    async def read_attribute(self, object_name, attribute):
        raise asyncio.CancelledError()


class InterruptedReadsConnector(MockManagementConnector):
    async def connect(self, address, port):
        self.server.open_connections += 1
        return InterruptedReads(self.server)


@pytest.mark.anyio
async def test_interrupt_during_attribute_read_is_a_negative_result(server, clock, transcript):
    probe = ReadinessProbe(InterruptedReadsConnector(server), sleep=clock.sleep, clock=clock)

    result = await probe.probe("127.0.0.1", 1099, 10, sink=transcript)

    assert result.reached is False
    assert result.samples == 0
    assert "Interrupted while waiting for server state." in transcript.messages("warning")
    assert server.open_connections == 0


@pytest.mark.anyio
async def test_cancelled_poll_leaves_task_uncancelled(server, clock, transcript):
    server.set_started(False)
    polling = asyncio.Event()
    calls = []

    async def sleep(seconds):
        calls.append(seconds)
        if len(calls) >= 2:
            polling.set()
            await asyncio.sleep(3600)

    probe = ReadinessProbe(MockManagementConnector(server), sleep=sleep, clock=clock)
    task = asyncio.create_task(probe.probe("127.0.0.1", 1099, 10, sink=transcript))
    await polling.wait()
    task.cancel()

    result = await task

    assert result.reached is False
    assert task.cancelling() == 0
    assert not task.cancelled()
    assert "Interrupted while waiting for server state." in transcript.messages("warning")
