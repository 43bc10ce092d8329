import asyncio

import pytest


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TrackingFetch:
    """Records every call; returns ``result`` (or raises ``error``) after ``gate`` opens."""

    def __init__(self, result=None, error=None, gate: asyncio.Event | None = None):
        self.calls = []
        self.result = result
        self.error = error
        self.gate = gate

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs) if kwargs else args)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


async def settle(rounds: int = 5) -> None:
    # let background fetch tasks run to completion
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()
