import asyncio
import logging
from typing import Any, Awaitable, Optional

from mp3queue.errors import AbortError


class CancellationHandle:
    """One-shot cancellation token shared by a task and its backend call"""

    def __init__(self):
        self._signalled = False
        self._bound: Optional[asyncio.Future] = None

    def signal(self) -> None:
        """Request cancellation; aborts the guarded call if one is running"""
        if self._signalled:
            return
        self._signalled = True
        if self._bound is not None and not self._bound.done():
            self._bound.cancel()

    def is_signalled(self) -> bool:
        return self._signalled

    async def guard(self, awaitable: Awaitable[Any], task_id: str = "") -> Any:
        """
        Run the awaitable so that signal() interrupts it.
        :param awaitable: the network call to run.
        :param task_id: used in the AbortError message.
        :return: whatever the awaitable returns.
        :raises AbortError: if the handle is, or becomes, signalled.
        """
        if self._signalled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise AbortError(task_id)

        inner = asyncio.ensure_future(awaitable)
        self._bound = inner
        try:
            return await inner
        except asyncio.CancelledError:
            if self._signalled:
                raise AbortError(task_id) from None
            raise
        finally:
            self._bound = None


class CancellationRegistry:
    """Cancels tasks by entity id against the dispatcher's queue and tracker"""

    def __init__(self, queue, tracker):
        self._queue = queue
        self._tracker = tracker
        self._in_flight = None
        self.logger = logging.getLogger(f"{__name__}.CancellationRegistry")

    def track(self, task) -> None:
        self._in_flight = task

    def release(self, task) -> None:
        if self._in_flight is task:
            self._in_flight = None

    def cancel(self, entity_id: str) -> bool:
        """
        Cancel the task for an entity.
        :return: True if a queued task was removed, False otherwise. A task
            already handed to the executor is only signalled; its status is
            cleared by the normal resolution path.
        """
        task = self._queue.find(entity_id)
        if task is not None and self._queue.remove_by_id(entity_id):
            task.handle.signal()
            self._tracker.mark_idle(entity_id)
            self.logger.info(f"Cancelled queued task {entity_id}")
            return True

        running = self._in_flight
        if running is not None and running.id == entity_id:
            running.handle.signal()
            self.logger.warning(f"Requested abort of in-flight task {entity_id}")
            return False

        self.logger.debug(f"No queued task for {entity_id}, nothing to cancel")
        return False
