"""Explicit success/failure values.

Every fallible release step returns ``Ok(value)`` or ``Err(error)`` instead
of raising, so the orchestrator decides at each stage whether a failure
aborts cleanly or has to unwind guarded actions first:

    match read_script_manifest(path):
        case Ok(scripts):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeAlias, TypeGuard, TypeVar

T = TypeVar("T")
E = TypeVar("E")
D = TypeVar("D")
U = TypeVar("U")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: D) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def map_err(self, f: Callable[[object], F]) -> Ok[T]:
        return self


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def unwrap(self) -> NoReturn:
        raise ValueError(f"unwrap() on Err: {self.error}")

    def unwrap_or(self, default: D) -> D:
        return default

    def map(self, f: Callable[[object], U]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Translate the error, for example a GitError into a ReleaseError."""
        return Err(f(self.error))


Result: TypeAlias = Ok[T] | Err[E]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)
