# app/utils/debounce.py
"""
Asyncio debouncer for the live prescription form.

Each schedule() cancels the pending call and starts a new quiescence window;
the callback only runs once the window elapses without another schedule().
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, delay_seconds: float):
        self.delay_seconds = delay_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[..., Awaitable[Any]], *args: Any) -> asyncio.Task:
        """
        Run `callback(*args)` after the delay unless superseded first.
        Must be called from a running event loop.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(callback, *args))
        return self._task

    async def _run(self, callback: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        await asyncio.sleep(self.delay_seconds)
        try:
            return await callback(*args)
        except Exception:
            logger.exception("Debounced call %s failed", getattr(callback, "__name__", callback))
            return None

    def cancel(self) -> None:
        if self.pending:
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending call, if any, to finish (or be cancelled)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
