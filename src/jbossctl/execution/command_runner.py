from __future__ import annotations

import os
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Protocol, Sequence, Union

from jbossctl.core.log import LogSink, fatal
from jbossctl.core.models import TargetDescriptor
from jbossctl.execution.properties import definition_arguments
from jbossctl.utils.diagnostics import CommandError

START_SCRIPTS = {True: "run.sh", False: "run.bat"}
STOP_SCRIPTS = {True: "shutdown.sh", False: "shutdown.bat"}


@dataclass(frozen=True)
class CommandLine:
    """
    Argument list plus optional working directory for one launch.

    On Windows ``args`` is a ready-made ``cmd /C "..."`` string, handed to the
    launcher as is.
    """

    args: Union[str, List[str]]
    cwd: Optional[Path] = None

    def display(self) -> str:
        if isinstance(self.args, str):
            return self.args
        return shlex.join(self.args)


class LaunchedProcess(Protocol):
    def wait(self) -> int:
        ...

    def stderr_lines(self) -> Iterator[str]:
        ...


class ProcessLauncher(Protocol):
    def launch(
        self,
        args: Union[str, Sequence[str]],
        cwd: Optional[Path] = None,
        stderr_path: Optional[Path] = None,
        detach: bool = False,
    ) -> LaunchedProcess:
        ...


class _PopenProcess:
    def __init__(self, process: subprocess.Popen) -> None:
        self._process = process

    @property
    def pid(self) -> int:
        return self._process.pid

    def wait(self) -> int:
        return self._process.wait()

    def stderr_lines(self) -> Iterator[str]:
        stream = self._process.stderr
        if stream is None:
            return
        try:
            for line in stream:
                yield line.rstrip("\r\n")
        finally:
            stream.close()


class SubprocessLauncher:
    """
    Spawns commands with stdout discarded. Stderr is captured as text, or
    appended to ``stderr_path`` when one is given.

    Detached launches get their own session on POSIX so signals aimed at the
    controlling process do not reach the server.
    """

    def launch(
        self,
        args: Union[str, Sequence[str]],
        cwd: Optional[Path] = None,
        stderr_path: Optional[Path] = None,
        detach: bool = False,
    ) -> _PopenProcess:
        log_file = None
        stderr = subprocess.PIPE
        if stderr_path is not None:
            log_file = open(stderr_path, "a", encoding="utf-8")
            stderr = log_file

        try:
            process = subprocess.Popen(
                args if isinstance(args, str) else list(args),
                cwd=str(cwd) if cwd is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=stderr,
                text=True,
                errors="replace",
                start_new_session=detach and os.name != "nt",
            )
        finally:
            # the child holds its own handle
            if log_file is not None:
                log_file.close()
        return _PopenProcess(process)


class CommandRunner:
    """
    Builds and runs the OS-level start/stop commands for a target.

    ``start`` returns as soon as the process is spawned; ``stop`` waits for the
    command to exit. Neither waits for the server itself.
    """

    def __init__(
        self,
        launcher: Optional[ProcessLauncher] = None,
        posix: Optional[bool] = None,
        env: Optional[Mapping[str, str]] = None,
        shutdown_url_scheme: str = "jnp",
        start_stderr_path: Optional[Path] = None,
    ) -> None:
        self.launcher = launcher or SubprocessLauncher()
        self.posix = (os.name != "nt") if posix is None else posix
        self.env = env
        self.shutdown_url_scheme = shutdown_url_scheme
        self.start_stderr_path = start_stderr_path

    def build_start_command(self, target: TargetDescriptor, properties: Optional[str] = None) -> CommandLine:
        try:
            definitions = definition_arguments(properties, env=self.env)
        except ValueError as exc:
            raise CommandError(str(exc)) from exc

        if target.is_local:
            bin_dir = self._bin_directory(target)
            args = [str(bin_dir / START_SCRIPTS[self.posix]), "-c", target.name, "-b", target.address]
            return CommandLine(self._platform_args(args + definitions), cwd=bin_dir)

        return CommandLine(self._remote_args(target.start_command, definitions))

    def build_stop_command(self, target: TargetDescriptor) -> CommandLine:
        if target.is_local:
            bin_dir = self._bin_directory(target)
            url = f"{self.shutdown_url_scheme}://{target.address}:{target.management_port}"
            args = [str(bin_dir / STOP_SCRIPTS[self.posix]), "-s", url, "-S"]
            return CommandLine(self._platform_args(args), cwd=bin_dir)

        return CommandLine(self._remote_args(target.stop_command, []))

    def start(self, target: TargetDescriptor, properties: Optional[str], sink: LogSink) -> bool:
        """
        Spawn the start command and return without waiting for it.

        Stderr is forwarded to ``sink`` only while this process lives; hosts
        that exit right after starting should set ``start_stderr_path``.
        """
        try:
            command = self.build_start_command(target, properties)
            sink.log(f"Executing start command: {command.display()}")
            process = self._launch(command, stderr_path=self.start_stderr_path, detach=True)
        except CommandError as exc:
            self._report(exc, sink)
            return False

        if self.start_stderr_path is not None:
            sink.log(f"Start command stderr is appended to {self.start_stderr_path}.")
            return True

        pump = threading.Thread(
            target=self._forward_stderr,
            args=(process, sink),
            name=f"jbossctl-stderr-{target.name}",
            daemon=True,
        )
        pump.start()
        return True

    def stop(self, target: TargetDescriptor, sink: LogSink) -> bool:
        """Run the stop command and wait for it to exit."""
        try:
            command = self.build_stop_command(target)
            sink.log(f"Executing stop command: {command.display()}")
            process = self._launch(command)
            self._forward_stderr(process, sink)
            exit_code = process.wait()
        except CommandError as exc:
            self._report(exc, sink)
            return False
        except OSError as exc:
            self._report(CommandError(f"Error while waiting for stop command: {exc}"), sink)
            return False

        if exit_code != 0:
            sink.log(f"Stop command exited with code {exit_code}.", severity="warning")
        return True

    def _launch(self, command: CommandLine, **options) -> LaunchedProcess:
        try:
            return self.launcher.launch(command.args, cwd=command.cwd, **options)
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            raise CommandError(f"Unable to execute '{command.display()}': {exc}", command.args) from exc

    def _platform_args(self, args: List[str]) -> Union[str, List[str]]:
        if self.posix:
            return args
        return self._cmd_line(subprocess.list2cmdline(args))

    def _remote_args(self, command: str, definitions: List[str]) -> Union[str, List[str]]:
        if self.posix:
            try:
                return shlex.split(command) + definitions
            except ValueError as exc:
                raise CommandError(f"Unable to parse command '{command}': {exc}") from exc
        parts = [command.strip()]
        if definitions:
            parts.append(subprocess.list2cmdline(definitions))
        return self._cmd_line(" ".join(parts))

    @staticmethod
    def _cmd_line(inner: str) -> str:
        # cmd strips the outer quotes and runs the rest verbatim
        return f'cmd /C "{inner}"'

    @staticmethod
    def _bin_directory(target: TargetDescriptor) -> Path:
        return Path(target.install_directory) / "bin"

    @staticmethod
    def _forward_stderr(process: LaunchedProcess, sink: LogSink) -> None:
        for line in process.stderr_lines():
            if line:
                sink.log(line, severity="warning")

    @staticmethod
    def _report(error: CommandError, sink: LogSink) -> None:
        detail = f"{error.message}"
        if error.__cause__ is not None:
            detail += f" ({type(error.__cause__).__name__}: {error.__cause__})"
        fatal(sink, f"Error during execution. {detail}")
