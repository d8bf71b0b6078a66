"""Guarded actions: perform A, and undo it with B if the operation later fails.

A ``GuardStack`` is an explicit stack of undo records. Each record is
registered right before its forward action runs and starts *armed*. When
the stack is unwound, armed records run in reverse registration order, so
later steps are undone before the steps they built on. Disarming a record
keeps its effect.

Usage:
    with GuardStack(console) as guards:
        tag_guard = guards.guard(
            "delete local tag 1.2.3",
            lambda: vcs.delete_tag("1.2.3"),
            manual="git tag -d 1.2.3",
        )
        ...
        guards.disarm_all()

Leaving the ``with`` block unwinds whatever is still armed, whether the body
returned early or raised.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Literal

from tagcut.core.result import Err, Result
from tagcut.output.console import ACTION_REQUIRED, ConsoleProtocol

__all__ = ["ACTION_REQUIRED", "Guard", "GuardStack", "UndoReport"]

GuardKind = Literal["undo", "manual"]
UndoStatus = Literal["undone", "failed", "manual"]

UndoFn = Callable[[], Result[None, object]]


@dataclass(slots=True)
class Guard:
    """One undo record.

    Attributes:
        name: What the undo does, for progress output.
        undo: Callable returning a Result; Err means the undo failed.
        manual: Instructions printed when the undo fails or cannot be automated.
        kind: "undo" for automated reversal, "manual" for operator-only recovery.
        armed: Whether the undo runs on unwind.
    """

    name: str
    undo: UndoFn | None
    manual: str
    kind: GuardKind = "undo"
    armed: bool = True

    def disarm(self) -> None:
        self.armed = False


@dataclass(frozen=True, slots=True)
class UndoReport:
    name: str
    status: UndoStatus
    detail: str | None = None


class GuardStack:
    """Stack of guards unwound in reverse registration order."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console
        self._guards: list[Guard] = []
        self._reports: list[UndoReport] = []

    def __enter__(self) -> GuardStack:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unwind()

    @property
    def guards(self) -> tuple[Guard, ...]:
        return tuple(self._guards)

    @property
    def armed(self) -> tuple[Guard, ...]:
        return tuple(g for g in self._guards if g.armed)

    @property
    def reports(self) -> tuple[UndoReport, ...]:
        return tuple(self._reports)

    def guard(self, name: str, undo: UndoFn, *, manual: str) -> Guard:
        """Register an armed undo action and return its handle."""
        g = Guard(name=name, undo=undo, manual=manual)
        self._guards.append(g)
        return g

    def warn(self, name: str, manual: str) -> Guard:
        """Register an effect that can only be reverted by an operator."""
        g = Guard(name=name, undo=None, manual=manual, kind="manual")
        self._guards.append(g)
        return g

    def disarm_all(self) -> None:
        for g in self._guards:
            g.disarm()

    def unwind(self) -> tuple[UndoReport, ...]:
        """Run every armed guard, last registered first.

        Each guard runs at most once: it is disarmed before its undo is
        attempted. A failing undo is reported and does not stop the rest.
        """
        reports: list[UndoReport] = []
        for g in reversed(self._guards):
            if not g.armed:
                continue
            g.disarm()
            reports.append(self._run_one(g))

        self._reports.extend(reports)
        return tuple(reports)

    def _run_one(self, g: Guard) -> UndoReport:
        if g.kind == "manual" or g.undo is None:
            self._console.action_required(g.manual)
            return UndoReport(name=g.name, status="manual")

        self._console.info(f"undo: {g.name}")
        try:
            result = g.undo()
        except Exception as e:  # noqa: BLE001 - one failing undo must not stop the others
            return self._failed(g, f"{type(e).__name__}: {e}")

        if isinstance(result, Err):
            detail = getattr(result.error, "message", None) or str(result.error)
            return self._failed(g, detail)

        return UndoReport(name=g.name, status="undone")

    def _failed(self, g: Guard, detail: str) -> UndoReport:
        self._console.action_required(f"failed to {g.name} ({detail}). {g.manual}")
        return UndoReport(name=g.name, status="failed", detail=detail)
