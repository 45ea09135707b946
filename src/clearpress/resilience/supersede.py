"""Latest-wins execution of overlapping async operations.

SupersedingRunner is the inverse of request deduplication: if operation
A is running for key "session:42" and operation B arrives for the same
key, A is cancelled and only B's result is delivered. An editor that
re-analyzes on demand uses this so a slow first analysis can never
overwrite the annotations of a faster second one.

Single event loop only; the editor host is single-threaded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class Superseded(Exception):
    """Raised to the caller whose operation was replaced by a newer one."""

    def __init__(self, key: str) -> None:
        super().__init__(f"operation for {key!r} was superseded")
        self.key = key


class SupersedingRunner:
    """Runs at most one operation per key; newer calls cancel older ones.

    Usage::

        runner = SupersedingRunner()
        try:
            report = await runner.run("session:42", analyze)
        except Superseded:
            return  # a newer analysis owns the document now
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    async def run(
        self,
        key: str,
        operation: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run operation for key, cancelling any older one first.

        The caller of the cancelled operation receives ``Superseded``.
        Cancellation of the caller itself propagates unchanged.
        """
        previous = self._in_flight.get(key)
        if previous is not None and not previous.done():
            logger.info("event=analysis_superseded key=%s", key)
            previous.cancel()

        async def _invoke() -> Any:
            return await operation()

        task: asyncio.Task[Any] = asyncio.ensure_future(_invoke())
        self._in_flight[key] = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and self._in_flight.get(key) is not task:
                raise Superseded(key) from None
            task.cancel()
            raise
        finally:
            if self._in_flight.get(key) is task:
                self._in_flight.pop(key, None)

    def cancel(self, key: str) -> bool:
        """Cancel the in-flight operation for key, if any."""
        task = self._in_flight.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    @property
    def active_keys(self) -> list[str]:
        """Return keys with an operation still running."""
        return [k for k, t in self._in_flight.items() if not t.done()]
