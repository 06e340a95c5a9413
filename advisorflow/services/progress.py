"""Cosmetic progress phases for long-running generation calls.

Phases pace a progress display only. ``run_with_progress`` awaits the real
operation and, in parallel, walks an observer through the phases; when the
operation finishes (or fails) the walk stops and, on success, the observer
gets the terminal index ``len(phases)``. The operation's result never waits
on the phase timers, and a failing observer is logged without touching it.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ProgressPhase:
    label: str
    duration: float  # seconds


GENERATION_PHASES = (
    ProgressPhase("Connecting to AI Engine", 1.5),
    ProgressPhase("Analyzing Topic & Context", 2.5),
    ProgressPhase("Crafting Your Draft", 8.0),
    ProgressPhase("Formatting & Polishing", 3.0),
)

EXTENSION_PHASES = (
    ProgressPhase("Reading Current Draft", 2.0),
    ProgressPhase("Identifying Expansion Points", 3.0),
    ProgressPhase("Writing New Sections", 8.0),
    ProgressPhase("Seamlessly Integrating", 3.0),
)

# observer(index, phase); phase is None at the terminal index.
ProgressObserver = Callable[[int, Optional[ProgressPhase]], None]


def _notify(observer: ProgressObserver, index: int, phase: Optional[ProgressPhase]) -> None:
    """Report one phase; a failing observer is logged and otherwise ignored."""
    try:
        observer(index, phase)
    except Exception:
        logger.warning(
            "Progress observer failed",
            exc_info=True,
            extra={"phase_index": index, "phase": phase.label if phase else None},
        )


async def _tick(phases: Sequence[ProgressPhase], observer: ProgressObserver) -> None:
    for index, phase in enumerate(phases):
        _notify(observer, index, phase)
        if index < len(phases) - 1:
            await asyncio.sleep(phase.duration)
    # Stays on the last phase until the real call returns.


async def run_with_progress(
    operation: Awaitable[T],
    phases: Sequence[ProgressPhase],
    observer: Optional[ProgressObserver] = None,
) -> T:
    """Await ``operation`` while reporting cosmetic phases to ``observer``."""
    if observer is None:
        return await operation

    ticker = asyncio.create_task(_tick(phases, observer))
    try:
        result = await operation
    finally:
        ticker.cancel()
        with suppress(asyncio.CancelledError):
            await ticker

    _notify(observer, len(phases), None)
    return result
