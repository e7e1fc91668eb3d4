import asyncio
from pathlib import Path
from typing import Optional

import typer
from jbossctl.cli.formatter import ConsoleLogSink, OutputFormatter
from jbossctl.config.loader import load_control
from jbossctl.config.settings import ControlConfig
from jbossctl.core.models import ModuleSpec, OperationType, parse_operation
from jbossctl.core.registry import TargetRegistry
from jbossctl.runtime.orchestrator import LifecycleOrchestrator
from jbossctl.utils.diagnostics import ConfigurationError, JBossCtlError

app = typer.Typer(name="jbossctl", help="JBoss AS lifecycle control for pipeline steps", rich_markup_mode=None)

DEFAULT_CONFIG = Path("jbossctl.yaml")

ConfigOption = typer.Option(
    DEFAULT_CONFIG,
    "--config",
    "-c",
    envvar="JBOSSCTL_CONFIG",
    help="Path to jbossctl.yaml.",
)


def _load_or_exit(config_path: Path, sink: ConsoleLogSink, check_directories: bool = False) -> tuple[ControlConfig, TargetRegistry]:
    try:
        return load_control(config_path, check_directories=check_directories)
    except ConfigurationError as e:
        sink.log(str(e), severity="critical")
        raise typer.Exit(code=1)


@app.command()
def run(
    target: str = typer.Argument(..., help="Name of the configured server."),
    operation: OperationType = typer.Argument(..., help="Operation to perform."),
    properties: Optional[str] = typer.Option(None, "--properties", "-p", help="key=value pairs passed as -D definitions on start."),
    modules: Optional[str] = typer.Option(None, "--modules", "-m", help="Modules to verify for check_deploy."),
    stop_on_failure: bool = typer.Option(False, "--stop-on-failure", help="Stop the server when check_deploy fails."),
    config_path: Path = ConfigOption,
):
    """
    Run one lifecycle operation against a configured server.
    """
    config, registry = _load_or_exit(config_path, ConsoleLogSink())
    sink = ConsoleLogSink(config.settings.log_level.lower())

    payload: dict = {"type": operation.value}
    if operation in (OperationType.START, OperationType.START_AND_WAIT):
        payload["extra_properties"] = properties
    elif operation == OperationType.CHECK_DEPLOY:
        payload["modules"] = modules or ""
        payload["stop_on_check_failure"] = stop_on_failure

    request = parse_operation(payload)
    orchestrator = LifecycleOrchestrator.from_config(config, registry)
    if not orchestrator.execute(target, request, sink):
        raise typer.Exit(code=1)


@app.command()
def targets(config_path: Path = ConfigOption):
    """
    List configured servers.
    """
    sink = ConsoleLogSink()
    _, registry = _load_or_exit(config_path, sink)
    if not len(registry):
        sink.log(f"No servers configured in '{config_path}'.", severity="warning")
        return
    OutputFormatter.print_targets(registry)


@app.command()
def status(
    target: str = typer.Argument(..., help="Name of the configured server."),
    timeout: Optional[int] = typer.Option(None, "--timeout", "-t", min=0, help="Probe bound in seconds."),
    config_path: Path = ConfigOption,
):
    """
    Report whether a configured server is running. Exit code 0 when running.
    """
    sink = ConsoleLogSink()
    config, registry = _load_or_exit(config_path, sink)
    descriptor = registry.snapshot().find_target(target)
    if descriptor is None:
        sink.log(f"Unknown server '{target}'.", severity="critical")
        raise typer.Exit(code=1)

    orchestrator = LifecycleOrchestrator.from_config(config, registry)
    bound = config.settings.precheck_timeout_seconds if timeout is None else timeout
    result = asyncio.run(
        orchestrator.probe.probe(
            descriptor.address,
            descriptor.management_port,
            bound,
            ignore_connect_errors=True,
            sink=sink,
        )
    )
    typer.echo(f"{descriptor.name}: {'running' if result.reached else 'not running'}")
    if not result.reached:
        raise typer.Exit(code=1)


@app.command()
def inspect(
    target: str = typer.Argument(..., help="Name of the configured server."),
    modules: str = typer.Option(..., "--modules", "-m", help="Modules to verify."),
    config_path: Path = ConfigOption,
):
    """
    Check module deployment and print a diagnostics table for failures.
    """
    sink = ConsoleLogSink()
    config, registry = _load_or_exit(config_path, sink)
    descriptor = registry.snapshot().find_target(target)
    if descriptor is None:
        sink.log(f"Unknown server '{target}'.", severity="critical")
        raise typer.Exit(code=1)

    orchestrator = LifecycleOrchestrator.from_config(config, registry)
    try:
        report = asyncio.run(
            orchestrator.checker.inspect(
                descriptor.address,
                descriptor.management_port,
                descriptor.timeout_seconds,
                ModuleSpec.parse_list(modules),
                sink,
            )
        )
    except JBossCtlError as e:
        sink.log(str(e), severity="critical")
        raise typer.Exit(code=1)

    OutputFormatter.print_diagnostics(report.diagnostics)
    if not report.healthy:
        raise typer.Exit(code=1)


@app.command()
def validate(
    config_path: Path = ConfigOption,
    check_directories: bool = typer.Option(True, "--check-dirs/--no-check-dirs", help="Verify local install directories."),
):
    """
    Validate the configuration file.
    """
    sink = ConsoleLogSink()
    if not config_path.exists():
        sink.log(f"Configuration file '{config_path}' not found.", severity="critical")
        raise typer.Exit(code=1)
    _, registry = _load_or_exit(config_path, sink, check_directories=check_directories)
    sink.log(f"Configuration OK: {len(registry)} server(s).", severity="success")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
