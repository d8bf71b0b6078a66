"""Console output for release runs.

The orchestrator reports progress, failures and manual-recovery steps
through ``ConsoleProtocol`` and never imports a terminal library itself.
``RichConsole`` backs the CLI; ``MockConsole`` records output for tests.

Manual-recovery lines (an undo that failed, or an effect only an operator
can revert) go through ``action_required`` so they are always prefixed with
``ACTION REQUIRED:`` and land on stderr next to the error that caused them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ACTION_REQUIRED",
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]

ACTION_REQUIRED = "ACTION REQUIRED:"


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Interface for styled console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def action_required(self, message: str) -> None:
        """Tell the operator what to run by hand to finish a recovery."""
        ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...


# (label, rich style of the label, style of the message, goes to stderr)
_LABELS: dict[str, tuple[str, str, str, bool]] = {
    "success": ("OK", "green", "", False),
    "info": ("info:", "cyan", "", False),
    "error": ("error:", "red bold", "", True),
    "action_required": (ACTION_REQUIRED, "yellow bold reverse", "yellow", True),
}

_RICH_STYLES: dict[Style, str] = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
}


class RichConsole:
    """Console backed by Rich.

    Errors and manual-recovery steps go to stderr so CI logs keep
    them even when stdout is discarded. Messages are printed with markup
    disabled: git output and file names may contain square brackets.
    """

    def __init__(self) -> None:
        # Lazy import keeps `import tagcut` free of Rich for library users
        from rich.console import Console

        self._out = Console(highlight=False)
        self._err = Console(stderr=True, highlight=False)

    def _labelled(self, kind: str, message: str) -> None:
        label, label_style, message_style, to_stderr = _LABELS[kind]
        console = self._err if to_stderr else self._out
        console.print(label, style=label_style, end=" ", markup=False)
        console.print(message, style=message_style or None, markup=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._out.print(message, style=_RICH_STYLES[style] or None, markup=False)

    def success(self, message: str) -> None:
        self._labelled("success", message)

    def error(self, message: str) -> None:
        self._labelled("error", message)

    def action_required(self, message: str) -> None:
        self._labelled("action_required", message)

    def info(self, message: str) -> None:
        self._labelled("info", message)

    def header(self, message: str) -> None:
        self._out.print()
        self._out.print(message, style=_RICH_STYLES[Style.HEADER], markup=False)


@dataclass
class OutputRecord:
    message: str
    style: Style


def _no_records() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Records every line, prefixed the way RichConsole labels it."""

    outputs: list[OutputRecord] = field(default_factory=_no_records)

    def _record(self, message: str, style: Style) -> None:
        self.outputs.append(OutputRecord(message, style))

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._record(message, style)

    def success(self, message: str) -> None:
        self._record(f"OK {message}", Style.SUCCESS)

    def error(self, message: str) -> None:
        self._record(f"error: {message}", Style.ERROR)

    def action_required(self, message: str) -> None:
        self._record(f"{ACTION_REQUIRED} {message}", Style.WARNING)

    def info(self, message: str) -> None:
        self._record(f"info: {message}", Style.INFO)

    def header(self, message: str) -> None:
        self._record(message, Style.HEADER)

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style is Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style is Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style is style)
