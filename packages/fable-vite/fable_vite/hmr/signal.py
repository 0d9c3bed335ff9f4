"""One-shot completion signal shared by everyone waiting on the same batch."""

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")


class CompletionSignal(Generic[T]):
    """
    Barrier that releases every waiter once, with one value.

    The future is created on the first ``wait()`` (nobody waiting costs
    nothing), ``fire()`` broadcasts to all waiters, and the owner replaces the
    signal with a fresh one for the next batch.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] | None = None
        self._fired = False
        self._value: T | None = None

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def has_waiters(self) -> bool:
        return self._future is not None and not self._future.done()

    async def wait(self) -> T:
        if self._fired:
            return self._value  # type: ignore[return-value]
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        # shield: one cancelled waiter must not cancel the shared future
        return await asyncio.shield(self._future)

    def fire(self, value: T) -> None:
        if self._fired:
            return
        self._fired = True
        self._value = value
        if self._future is not None and not self._future.done():
            self._future.set_result(value)
