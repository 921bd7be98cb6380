"""
Startup Gate.

One-shot broadcast primitive that joins the start phase (all contributions'
``on_start`` hooks) with the native ready signal. The ready handler can arrive
before, during or after the start phase; it simply awaits the gate.
"""
import asyncio
from dataclasses import dataclass
from typing import Optional
from loguru import logger

from .lifecycle import LifecycleError


class StartupGateError(LifecycleError):
    """Raised when the gate is begun or settled more than once."""
    pass


@dataclass(frozen=True)
class StartupOutcome:
    """Settled result of the start phase, shared by every waiter."""
    succeeded: bool
    error: Optional[BaseException] = None


class StartupGate:
    """
    Settles exactly once and broadcasts the outcome to every waiter.

    Usage:
        gate = StartupGate()
        gate.signal_start_begin()
        ...
        gate.complete()            # or gate.complete(error)

        outcome = await gate.wait()
        if not outcome.succeeded:
            ...
    """

    def __init__(self, name: str = "startup"):
        self.name = name
        self._begun = False
        self._outcome: Optional[StartupOutcome] = None
        self._settled = asyncio.Event()

    @property
    def begun(self) -> bool:
        return self._begun

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[StartupOutcome]:
        """Settled outcome, or None while the start phase is running."""
        return self._outcome

    def signal_start_begin(self) -> None:
        """Mark the beginning of the start phase. Only one producer may do this."""
        if self._begun:
            raise StartupGateError(f"Gate '{self.name}' start phase already begun")
        self._begun = True
        logger.debug(f"Gate '{self.name}': start phase begun")

    def complete(self, error: Optional[BaseException] = None) -> StartupOutcome:
        """
        Settle the gate: success when ``error`` is None, failure otherwise.

        Raises:
            StartupGateError: If the gate was already settled (no re-arming)
        """
        if self._outcome is not None:
            raise StartupGateError(f"Gate '{self.name}' already settled")

        self._outcome = StartupOutcome(succeeded=error is None, error=error)
        self._settled.set()

        if error is None:
            logger.info(f"Gate '{self.name}' resolved")
        else:
            logger.warning(f"Gate '{self.name}' rejected: {error!r}")
        return self._outcome

    async def wait(self) -> StartupOutcome:
        """Suspend until settled, then return the shared outcome."""
        if self._outcome is None:
            await self._settled.wait()
        return self._outcome
