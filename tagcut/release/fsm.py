from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from tagcut.core.result import Err, Ok, Result
from tagcut.release.errors import ReleaseError
from tagcut.release.model import ReleaseState

StepHandler = Callable[[], Result[None, ReleaseError]]
EnterHook = Callable[[ReleaseState], None]


@dataclass(frozen=True, slots=True)
class Step:
    state: ReleaseState
    handler: StepHandler


def run_steps(steps: Sequence[Step], *, on_enter: EnterHook) -> Result[None, ReleaseError]:
    """Run steps in order, stopping at the first error.

    ``on_enter`` is called with each state before its handler runs, so the
    caller always knows the last state that was reached.
    """
    for step in steps:
        on_enter(step.state)
        outcome = step.handler()
        if isinstance(outcome, Err):
            return outcome
    return Ok(None)
