import asyncio
import logging
from typing import Dict, List, Optional

from mp3queue.cancellation import CancellationRegistry
from mp3queue.errors import AbortError, FatalError, InputError, TransportError
from mp3queue.models import EntityStatus, Task
from mp3queue.notifier import CompletionNotifier
from mp3queue.task_queue import TaskQueue
from mp3queue.tracker import StatusTracker


class Dispatcher:
    """Runs queued tasks one at a time, in the order they were enqueued.

    All methods except join() and aclose() are synchronous and must be
    called from the event loop thread. The only suspension point is the
    executor call, so enqueue/cancel/status stay responsive while a task
    is waiting on the backend.
    """

    def __init__(self, executor, notifier: Optional[CompletionNotifier] = None):
        self._executor = executor
        self._notifier = notifier or CompletionNotifier()
        self._tracker = StatusTracker()
        self._queue = TaskQueue(on_change=self._maybe_start_next)
        self._registry = CancellationRegistry(self._queue, self._tracker)
        self._current: Optional[Task] = None
        self._runner: Optional[asyncio.Task] = None
        self._starting = False
        self._closed = False
        self._fatal: Optional[FatalError] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self.logger = logging.getLogger(f"{__name__}.Dispatcher")

    @property
    def notifier(self) -> CompletionNotifier:
        return self._notifier

    @property
    def in_flight(self) -> Optional[Task]:
        return self._current

    def pending(self) -> List[str]:
        return self._queue.ids()

    def status(self, entity_id: str) -> EntityStatus:
        return self._tracker.status(entity_id)

    def statuses(self) -> Dict[str, EntityStatus]:
        return self._tracker.snapshot()

    def busy(self) -> bool:
        return self._current is not None or len(self._queue) > 0

    def enqueue(self, task: Task) -> None:
        """Append a task; returns without waiting for it to run"""
        if self._fatal is not None:
            raise self._fatal
        if self._closed:
            raise RuntimeError("Dispatcher is closed")

        self._tracker.mark_queued(task.id)
        self.logger.info(f"Queued {task.kind_name} task {task.id} ({len(self._queue) + 1} pending)")
        self._queue.enqueue(task)

    def cancel(self, entity_id: str) -> bool:
        return self._registry.cancel(entity_id)

    async def join(self) -> None:
        """Wait until the queue is drained and nothing is in flight"""
        while True:
            await self._idle.wait()
            if self._fatal is not None:
                raise self._fatal
            if self._current is None and (self._closed or not len(self._queue)):
                return

    async def aclose(self) -> None:
        """Stop dispatching, cancel queued tasks and abort the running one"""
        self._closed = True
        for task_id in self._queue.ids():
            self._registry.cancel(task_id)

        runner = self._runner
        if self._current is not None:
            self._current.handle.signal()
        if runner is not None and not runner.done():
            runner.cancel()
            await asyncio.gather(runner, return_exceptions=True)
        self._idle.set()

    def _maybe_start_next(self) -> None:
        if self._starting or self._current is not None:
            return
        if self._fatal is not None or self._closed or not len(self._queue):
            self._idle.set()
            return

        self._starting = True
        try:
            task = self._queue.pop_head()
        finally:
            self._starting = False

        self._current = task
        self._idle.clear()
        self._registry.track(task)
        self._tracker.mark_in_progress(task.id)
        self.logger.info(f"Dispatching {task.kind_name} task {task.id}")
        self._runner = asyncio.get_running_loop().create_task(
            self._run(task), name=f"mp3queue-{task.id}"
        )

    async def _run(self, task: Task) -> None:
        try:
            result = await self._executor.execute(task)
        except FatalError as e:
            self._fatal = e
            self.logger.error(f"Dispatcher stopped on task {task.id}: {e}")
        except AbortError:
            self.logger.info(f"Task {task.id} aborted")
        except (TransportError, InputError) as e:
            self.logger.error(f"Task {task.id} failed: {e}")
            self._notifier.publish_failure(task, e)
        except asyncio.CancelledError:
            self.logger.warning(f"Task {task.id} interrupted by shutdown")
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error executing task {task.id}: {e}")
            self._notifier.publish_failure(task, e)
        else:
            if task.handle.is_signalled():
                self.logger.warning(f"Discarding late result of cancelled task {task.id}")
            else:
                self._notifier.publish_result(task, result)
        finally:
            self._tracker.mark_idle(task.id)
            self._registry.release(task)
            self._current = None
            self._runner = None
            self._maybe_start_next()
