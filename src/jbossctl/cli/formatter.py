from typing import Iterable, List
from rich.console import Console
from rich.table import Table
from jbossctl.core.log import severity_rank
from jbossctl.core.models import TargetDescriptor
from jbossctl.utils.diagnostics import CheckDiagnostic

# Create a stderr console for logging
error_console = Console(stderr=True)

_STYLES = {
    "debug": "dim",
    "info": "white",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "critical": "bold red",
}


class ConsoleLogSink:
    """
    Log sink printing run narration to stderr with color coding.
    Lines below ``min_severity`` are dropped.
    """

    def __init__(self, min_severity: str = "info", console: Console = None):
        self.min_rank = severity_rank(min_severity)
        self.console = console or error_console

    def log(self, message: str, severity: str = "info") -> None:
        if severity_rank(severity) < self.min_rank:
            return
        style = _STYLES.get(severity, "white")
        prefix = "[FATAL]" if severity == "critical" else "[JBOSS]"
        self.console.print(f"{prefix} {message}", style=style, markup=False, highlight=False)


class OutputFormatter:
    """
    Tables for the CLI. Narration goes to stderr, tables to stdout.
    """

    console = Console()

    @staticmethod
    def print_diagnostics(diagnostics: List[CheckDiagnostic]) -> None:
        """
        Prints a table of failed checks.
        """
        if not diagnostics:
            return

        table = Table(title="Deployment Diagnostics", border_style="red", header_style="bold red")
        table.add_column("Severity", style="bold")
        table.add_column("Code")
        table.add_column("Message")
        table.add_column("Module")
        table.add_column("Suggestion")

        for diag in diagnostics:
            color = "red"
            if diag.severity == "warning":
                color = "yellow"
            elif diag.severity == "critical":
                color = "bold red"

            table.add_row(
                f"[{color}]{diag.severity.upper()}[/{color}]",
                diag.error_code,
                diag.message,
                diag.subject,
                diag.suggestion or "",
            )

        error_console.print(table)
        error_console.print() # spacing

    @classmethod
    def print_targets(cls, targets: Iterable[TargetDescriptor]) -> None:
        table = Table(title="Configured Servers")
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Endpoint")
        table.add_column("Timeout")
        table.add_column("Location / Commands")

        for target in targets:
            if target.is_local:
                where = str(target.install_directory)
            else:
                where = f"start: {target.start_command}\nstop: {target.stop_command}"
            table.add_row(target.name, target.kind.value, target.endpoint, f"{target.timeout_seconds}s", where)

        cls.console.print(table)
