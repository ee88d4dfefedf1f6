import logging
from typing import Any, Dict

from mp3queue.backend import BackendClient
from mp3queue.errors import FatalError, InputError, TransportError
from mp3queue.models import (
    BatchPayload,
    ExternalPayload,
    ExtractPayload,
    Result,
    Task,
    TaskKind,
)


class TaskExecutor:
    """Execute different kinds of extraction tasks against the backend"""

    def __init__(self, client: BackendClient):
        self.client = client
        self.logger = logging.getLogger(f"{__name__}.TaskExecutor")

    async def execute(self, task: Task) -> Result:
        """Execute the task based on its kind"""
        self.logger.info(f"Executing {task.kind_name} task {task.id}")

        if task.kind == TaskKind.SEGMENT:
            data = await self._execute_segment(task)
        elif task.kind == TaskKind.SIMPLE:
            data = await self._execute_simple(task)
        elif task.kind == TaskKind.NO_MUSIC:
            data = await self._execute_no_music(task)
        elif task.kind == TaskKind.BATCH:
            data = await self._execute_batch(task)
        elif task.kind == TaskKind.EXTERNAL:
            data = await self._execute_external(task)
        else:
            raise FatalError(f"Unknown task kind: {task.kind!r} (task {task.id})")

        return self._to_result(task, data)

    async def _execute_segment(self, task: Task) -> Dict[str, Any]:
        """Extract a bounded time range"""
        payload = self._extract_payload(task)
        if payload.start is None or payload.end is None or payload.start >= payload.end:
            raise InputError(f"Invalid segment for task {task.id}")

        body = payload.source.to_request()
        body["startTime"] = payload.start
        body["endTime"] = payload.end
        return await task.handle.guard(self.client.download_mp3(body), task.id)

    async def _execute_simple(self, task: Task) -> Dict[str, Any]:
        """Full-length extraction, no range fields"""
        payload = self._extract_payload(task)
        body = payload.source.to_request()
        return await task.handle.guard(self.client.download_mp3(body), task.id)

    async def _execute_no_music(self, task: Task) -> Dict[str, Any]:
        """Full-length extraction with background music removed"""
        payload = self._extract_payload(task)
        body = payload.source.to_request()
        # The endpoint distinguishes "no range" from "range not sent"
        body["startTime"] = None
        body["endTime"] = None
        return await task.handle.guard(self.client.download_mp3_no_music(body), task.id)

    async def _execute_batch(self, task: Task) -> Dict[str, Any]:
        """One call for every listed video"""
        if not isinstance(task.payload, BatchPayload) or not task.payload.sources:
            raise InputError(f"Batch task {task.id} has no videos")
        body = {"videos": [video.to_request() for video in task.payload.sources]}
        return await task.handle.guard(self.client.download_all(body), task.id)

    async def _execute_external(self, task: Task) -> Dict[str, Any]:
        """Extraction from a URL outside the fetched list"""
        payload = task.payload
        if not isinstance(payload, ExternalPayload) or not payload.url:
            raise InputError(f"External task {task.id} has no URL")
        body: Dict[str, Any] = {"url": payload.url}
        if payload.filename:
            body["filename"] = payload.filename
        return await task.handle.guard(self.client.download_external(body), task.id)

    def _extract_payload(self, task: Task) -> ExtractPayload:
        payload = task.payload
        if not isinstance(payload, ExtractPayload) or not payload.source.url:
            raise InputError(f"Missing source URL for task {task.id}")
        return payload

    def _to_result(self, task: Task, data: Dict[str, Any]) -> Result:
        skipped = bool(data.get("skipped", False))
        artifact = data.get("file")
        if not skipped and not artifact:
            raise TransportError(f"Backend response for task {task.id} has no file")
        return Result(artifact_path=str(artifact or ""), skipped=skipped)
