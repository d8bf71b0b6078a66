from __future__ import annotations

import pytest

from tagcut.core.result import Err, Ok, Result
from tagcut.output.console import MockConsole
from tagcut.release.guards import ACTION_REQUIRED, GuardStack


def _recorder(log: list[str], name: str) -> Result[None, object]:
    log.append(name)
    return Ok(None)


def test_unwind_runs_in_reverse_registration_order() -> None:
    log: list[str] = []
    guards = GuardStack(MockConsole())
    guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
    guards.guard("U2", lambda: _recorder(log, "U2"), manual="m2")
    guards.guard("U3", lambda: _recorder(log, "U3"), manual="m3")

    reports = guards.unwind()

    assert log == ["U3", "U2", "U1"]
    assert [r.name for r in reports] == ["U3", "U2", "U1"]
    assert all(r.status == "undone" for r in reports)


def test_disarmed_guards_are_skipped() -> None:
    log: list[str] = []
    guards = GuardStack(MockConsole())
    guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
    kept = guards.guard("U2", lambda: _recorder(log, "U2"), manual="m2")
    kept.disarm()

    guards.unwind()

    assert log == ["U1"]


def test_each_guard_runs_at_most_once() -> None:
    log: list[str] = []
    guards = GuardStack(MockConsole())
    guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")

    guards.unwind()
    guards.unwind()

    assert log == ["U1"]
    assert guards.armed == ()


def test_disarm_all_keeps_every_effect() -> None:
    log: list[str] = []
    with GuardStack(MockConsole()) as guards:
        guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
        guards.warn("W", "push by hand")
        guards.disarm_all()

    assert log == []


def test_failed_undo_is_reported_and_others_still_run() -> None:
    log: list[str] = []
    console = MockConsole()
    guards = GuardStack(console)
    guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
    guards.guard("U2", lambda: Err("tag not found"), manual="Run 'git tag -d x'.")
    guards.guard("U3", lambda: _recorder(log, "U3"), manual="m3")

    reports = guards.unwind()

    assert log == ["U3", "U1"]
    assert [r.status for r in reports] == ["undone", "failed", "undone"]
    assert reports[1].detail == "tag not found"
    warnings = console.find(ACTION_REQUIRED)
    assert len(warnings) == 1
    assert "Run 'git tag -d x'." in warnings[0].message


def test_raising_undo_does_not_stop_unwinding() -> None:
    log: list[str] = []

    def boom() -> Result[None, object]:
        raise OSError("disk gone")

    guards = GuardStack(MockConsole())
    guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
    guards.guard("U2", boom, manual="m2")

    reports = guards.unwind()

    assert log == ["U1"]
    assert reports[0].status == "failed"
    assert reports[0].detail == "OSError: disk gone"


def test_manual_guard_emits_action_required() -> None:
    console = MockConsole()
    guards = GuardStack(console)
    guards.warn("revert push", "Run 'git push -f origin main'.")

    reports = guards.unwind()

    assert reports[0].status == "manual"
    assert console.find("ACTION REQUIRED: Run 'git push -f origin main'.")


def test_context_manager_unwinds_on_exception() -> None:
    log: list[str] = []
    with pytest.raises(RuntimeError):
        with GuardStack(MockConsole()) as guards:
            guards.guard("U1", lambda: _recorder(log, "U1"), manual="m1")
            raise RuntimeError("step exploded")

    assert log == ["U1"]
