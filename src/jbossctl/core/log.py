from __future__ import annotations

from typing import List, Protocol, Tuple

SEVERITY_ORDER = {
    "debug": 0,
    "info": 1,
    "success": 1,
    "warning": 2,
    "error": 3,
    "critical": 4,
}


def severity_rank(severity: str) -> int:
    return SEVERITY_ORDER.get(severity.lower(), 1)


class LogSink(Protocol):
    """Destination for the operator-facing narration of a run."""

    def log(self, message: str, severity: str = "info") -> None:
        ...


def fatal(sink: LogSink, message: str) -> None:
    sink.log(message, severity="critical")


class Transcript:
    """In-memory sink recording every line in order."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str]] = []

    def log(self, message: str, severity: str = "info") -> None:
        self.records.append((severity, message))

    @property
    def lines(self) -> List[str]:
        return [message for _, message in self.records]

    def messages(self, severity: str) -> List[str]:
        return [message for level, message in self.records if level == severity]

    def text(self) -> str:
        return "\n".join(self.lines)


class TeeSink:
    """Fan one narration out to several sinks."""

    def __init__(self, *sinks: LogSink) -> None:
        self.sinks = sinks

    def log(self, message: str, severity: str = "info") -> None:
        for sink in self.sinks:
            sink.log(message, severity=severity)
