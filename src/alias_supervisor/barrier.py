"""Completion barrier for supervised processes."""

import asyncio


class CompletionBarrier:
    """Countdown that releases waiters when it drops to zero.

    Starts released; every ``add`` must be matched by one ``done``.
    """

    def __init__(self):
        self._count = 0
        self._released = asyncio.Event()
        self._released.set()

    def add(self, n: int = 1) -> None:
        self._count += n
        if self._count > 0:
            self._released.clear()

    def done(self) -> None:
        if self._count <= 0:
            raise RuntimeError("CompletionBarrier.done() called more times than add()")
        self._count -= 1
        if self._count == 0:
            self._released.set()

    async def wait(self) -> None:
        await self._released.wait()
