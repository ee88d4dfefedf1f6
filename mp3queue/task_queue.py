from collections import deque
from typing import Callable, Deque, List, Optional

from mp3queue.models import Task


class TaskQueue:
    """In-memory FIFO of pending tasks.

    Every mutation calls the change listener synchronously, which is how
    the dispatcher learns that it may have work to start.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._tasks: Deque[Task] = deque()
        self._on_change = on_change

    def enqueue(self, task: Task) -> None:
        self._tasks.append(task)
        self._changed()

    def peek_head(self) -> Optional[Task]:
        return self._tasks[0] if self._tasks else None

    def pop_head(self) -> Optional[Task]:
        if not self._tasks:
            return None
        task = self._tasks.popleft()
        self._changed()
        return task

    def find(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def remove_by_id(self, task_id: str) -> bool:
        """Remove the first task with this id; returns whether one was removed"""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                del self._tasks[index]
                self._changed()
                return True
        return False

    def ids(self) -> List[str]:
        return [task.id for task in self._tasks]

    def __len__(self) -> int:
        return len(self._tasks)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
