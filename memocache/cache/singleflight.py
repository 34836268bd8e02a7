from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass


@dataclass(slots=True)
class _Gate:
    lock: asyncio.Lock
    waiters: int


class SingleFlight:
    """Per-key exclusion so only one caller runs a fetch for a given canonical key.

    Gates are created on first use and dropped once the last waiter leaves.
    """

    def __init__(self) -> None:
        self._gates: dict[str, _Gate] = {}

    @asynccontextmanager
    async def gate(self, key: str) -> AsyncIterator[None]:
        gate = self._gates.get(key)
        if gate is None:
            gate = _Gate(lock=asyncio.Lock(), waiters=0)
            self._gates[key] = gate
        gate.waiters += 1
        try:
            async with gate.lock:
                yield
        finally:
            gate.waiters -= 1
            if gate.waiters <= 0:
                self._gates.pop(key, None)

    def in_flight(self) -> int:
        """Number of keys with an active or queued fetch."""
        return len(self._gates)
