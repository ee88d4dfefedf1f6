import logging
from typing import Dict

from mp3queue.models import EntityStatus


class StatusTracker:
    """Per-entity status; an entity with no entry is idle"""

    def __init__(self):
        self._statuses: Dict[str, EntityStatus] = {}
        self.logger = logging.getLogger(f"{__name__}.StatusTracker")

    def mark_queued(self, entity_id: str) -> None:
        self._set(entity_id, EntityStatus.QUEUED)

    def mark_in_progress(self, entity_id: str) -> None:
        self._set(entity_id, EntityStatus.IN_PROGRESS)

    def mark_idle(self, entity_id: str) -> None:
        if self._statuses.pop(entity_id, None) is not None:
            self.logger.debug(f"{entity_id} -> {EntityStatus.IDLE.value}")

    def status(self, entity_id: str) -> EntityStatus:
        return self._statuses.get(entity_id, EntityStatus.IDLE)

    def busy(self, entity_id: str) -> bool:
        return entity_id in self._statuses

    def any_busy(self) -> bool:
        return bool(self._statuses)

    def snapshot(self) -> Dict[str, EntityStatus]:
        return dict(self._statuses)

    def _set(self, entity_id: str, status: EntityStatus) -> None:
        self._statuses[entity_id] = status
        self.logger.debug(f"{entity_id} -> {status.value}")
