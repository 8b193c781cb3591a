"""Saga coordinator for multi-step operations across independent stores.

Each step returns a StepResult instead of raising. Successful steps may
register a compensation; when a step fails the coordinator runs every
registered compensation in reverse order, then surfaces the original error.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import NoReturn

logger = logging.getLogger(__name__)

Compensation = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class StepResult[T]:
    """Outcome of one saga step: value on success, error on failure."""

    step: str
    ok: bool
    value: T | None = None
    error: Exception | None = None


class SagaCoordinator:
    """Runs saga steps and owns their compensations.

    Compensations run newest first. A compensation that raises is logged and
    the remaining compensations still run.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.completed_steps: list[str] = []
        self._compensations: list[tuple[str, Compensation]] = []

    async def run_step[T](
        self,
        step: str,
        action: Callable[[], Awaitable[T]],
        compensate: Callable[[T], Awaitable[None]] | None = None,
    ) -> StepResult[T]:
        """Run action; on success register compensate(value) and return the value."""
        try:
            value = await action()
        except Exception as exc:
            logger.warning(
                "Saga %s step %s failed: %s", self.name, step, type(exc).__name__
            )
            return StepResult(step=step, ok=False, error=exc)
        if compensate is not None:
            self._compensations.append((step, _bind(compensate, value)))
        self.completed_steps.append(step)
        return StepResult(step=step, ok=True, value=value)

    async def execute[T](
        self,
        step: str,
        action: Callable[[], Awaitable[T]],
        compensate: Callable[[T], Awaitable[None]] | None = None,
    ) -> T:
        """Run a step and abort the saga if it fails. Returns the step value."""
        result = await self.run_step(step, action, compensate)
        if not result.ok:
            await self.abort(result)
        return result.value  # type: ignore[return-value]

    async def abort(self, failed: StepResult) -> NoReturn:
        """Compensate all completed steps, then raise the failed step's error."""
        await self.compensate()
        assert failed.error is not None
        raise failed.error

    async def compensate(self) -> None:
        """Run registered compensations in reverse order (each at most once)."""
        while self._compensations:
            step, undo = self._compensations.pop()
            try:
                await undo()
                logger.info("Saga %s compensated step %s", self.name, step)
            except Exception:
                logger.exception(
                    "Saga %s compensation for step %s failed", self.name, step
                )


def _bind[T](
    compensate: Callable[[T], Awaitable[None]], value: T
) -> Compensation:
    async def _undo() -> None:
        await compensate(value)

    return _undo
