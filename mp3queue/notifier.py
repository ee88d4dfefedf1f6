import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from mp3queue.models import Result, Task, Video


@dataclass(frozen=True)
class ArtifactEvent:
    artifact_path: str
    entity_id: str
    video: Optional[Video] = None


@dataclass(frozen=True)
class ErrorEvent:
    entity_id: str
    message: str


ArtifactCallback = Callable[[ArtifactEvent], None]
ErrorCallback = Callable[[ErrorEvent], None]


class CompletionNotifier:
    """Counts finished downloads and tells subscribers about new artifacts"""

    def __init__(self):
        self.completed = 0
        self.last_artifact: Optional[ArtifactEvent] = None
        self.errors: List[ErrorEvent] = []
        self._artifact_callbacks: List[ArtifactCallback] = []
        self._error_callbacks: List[ErrorCallback] = []
        self.logger = logging.getLogger(f"{__name__}.CompletionNotifier")

    def subscribe(
        self,
        on_artifact: Optional[ArtifactCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        if on_artifact is not None:
            self._artifact_callbacks.append(on_artifact)
        if on_error is not None:
            self._error_callbacks.append(on_error)

    def publish_result(self, task: Task, result: Result) -> Optional[ArtifactEvent]:
        if result.skipped:
            self.logger.info(f"Skipped {task.id}: artifact already exists")
            return None

        self.completed += 1
        event = ArtifactEvent(artifact_path=result.artifact_path, entity_id=task.id, video=task.video)
        self.last_artifact = event
        self.logger.info(f"Downloaded {task.label} -> {result.artifact_path} ({self.completed} total)")
        for callback in self._artifact_callbacks:
            self._deliver(callback, event)
        return event

    def publish_failure(self, task: Task, error: Exception) -> ErrorEvent:
        event = ErrorEvent(entity_id=task.id, message=f'Failed to download "{task.label}": {error}')
        self.errors.append(event)
        for callback in self._error_callbacks:
            self._deliver(callback, event)
        return event

    def errors_for(self, entity_id: str) -> List[ErrorEvent]:
        return [event for event in self.errors if event.entity_id == entity_id]

    def reset(self) -> None:
        """Start a new count; called when a new video list is fetched"""
        self.completed = 0
        self.errors.clear()

    def _deliver(self, callback, event) -> None:
        try:
            callback(event)
        except Exception as e:
            self.logger.error(f"Error in subscriber for {event.entity_id}: {e}")
