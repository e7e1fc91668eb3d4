import pytest
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from jbossctl.core.log import Transcript
from jbossctl.core.models import TargetDescriptor
from jbossctl.management.mock import MockManagementConnector, MockManagementServer
from jbossctl.runtime.readiness import ReadinessProbe


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    """Monotonic clock advanced only by FakeClock.sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeProcess:
    def __init__(self, stderr: Sequence[str] = (), exit_code: int = 0) -> None:
        self._stderr = list(stderr)
        self.exit_code = exit_code
        self.waited = False

    def wait(self) -> int:
        self.waited = True
        return self.exit_code

    def stderr_lines(self):
        yield from self._stderr


class FakeLauncher:
    """Records launches instead of spawning processes."""

    def __init__(self, stderr: Sequence[str] = (), exit_code: int = 0, error: Optional[Exception] = None) -> None:
        self.stderr = stderr
        self.exit_code = exit_code
        self.error = error
        self.launches: List[tuple] = []
        self.options: List[dict] = []
        self.processes: List[FakeProcess] = []

    def launch(self, args, cwd=None, **options):
        self.launches.append((args if isinstance(args, str) else list(args), cwd))
        self.options.append(options)
        if self.error is not None:
            raise self.error
        process = FakeProcess(self.stderr, self.exit_code)
        self.processes.append(process)
        return process


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transcript():
    return Transcript()


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def server():
    return MockManagementServer()


@pytest.fixture
def probe(server, clock):
    return ReadinessProbe(MockManagementConnector(server), sleep=clock.sleep, clock=clock)


@pytest.fixture
def local_target(tmp_path):
    return TargetDescriptor.local(
        name="default",
        install_directory=tmp_path / "jboss",
        management_port=1099,
        timeout_seconds=15,
    )


@pytest.fixture
def remote_target():
    return TargetDescriptor.remote(
        name="staging",
        start_command="ssh deploy@staging /opt/jboss/bin/run.sh -c staging",
        stop_command="ssh deploy@staging /opt/jboss/bin/shutdown.sh -S",
        management_port=8080,
        address="10.0.0.12",
        timeout_seconds=30,
    )
