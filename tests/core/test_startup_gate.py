import asyncio

import pytest

from apphost.core.gate import StartupGate, StartupGateError, StartupOutcome
from apphost.core.lifecycle import LifecycleError


def test_begin_twice_raises():
    gate = StartupGate()
    gate.signal_start_begin()

    assert gate.begun
    with pytest.raises(StartupGateError):
        gate.signal_start_begin()


def test_complete_twice_raises():
    gate = StartupGate()
    gate.complete()

    with pytest.raises(StartupGateError):
        gate.complete(RuntimeError("late"))
    # The first outcome stands
    assert gate.outcome.succeeded


def test_gate_error_is_lifecycle_error():
    assert issubclass(StartupGateError, LifecycleError)


def test_outcome_before_settle_is_none():
    gate = StartupGate()
    assert gate.outcome is None
    assert not gate.settled


def test_rejection_carries_error():
    gate = StartupGate()
    error = ValueError("boom")

    outcome = gate.complete(error)

    assert outcome == StartupOutcome(succeeded=False, error=error)
    assert gate.settled


@pytest.mark.asyncio
async def test_wait_after_settle_returns_same_outcome():
    gate = StartupGate()
    outcome = gate.complete()

    results = [await gate.wait() for _ in range(5)]

    assert all(r is outcome for r in results)
    assert outcome.succeeded
    assert outcome.error is None


@pytest.mark.asyncio
async def test_waiters_before_settle_receive_broadcast():
    gate = StartupGate()
    waiters = [asyncio.ensure_future(gate.wait()) for _ in range(3)]

    await asyncio.sleep(0)
    assert not any(w.done() for w in waiters)

    error = RuntimeError("start failed")
    outcome = gate.complete(error)
    results = await asyncio.gather(*waiters)

    assert all(r is outcome for r in results)
    assert results[0].error is error


@pytest.mark.asyncio
async def test_late_and_early_waiters_agree():
    gate = StartupGate()
    early = asyncio.ensure_future(gate.wait())
    await asyncio.sleep(0)

    gate.complete()
    late = await gate.wait()

    assert (await early) is late
