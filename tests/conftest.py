from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from mp3queue.models import Result, Task, Video


class GatedExecutor:
    """Executor stub whose calls stay pending until the test resolves them."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self.gates: Dict[str, asyncio.Future] = {}

    async def execute(self, task: Task) -> Result:
        self.calls.append(task.id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        gate = asyncio.get_running_loop().create_future()
        self.gates[task.id] = gate
        try:
            return await task.handle.guard(gate, task.id)
        finally:
            self.active -= 1

    def resolve(self, task_id: str, artifact: str = "x.mp3", skipped: bool = False) -> None:
        self.gates[task_id].set_result(Result(artifact_path=artifact, skipped=skipped))

    def fail(self, task_id: str, error: Exception) -> None:
        self.gates[task_id].set_exception(error)


class StubClient:
    """Records backend calls and answers with canned payloads."""

    def __init__(self, response: Dict[str, Any] | None = None) -> None:
        self.response = response if response is not None else {"file": "out.mp3", "skipped": False}
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    async def _answer(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((name, body))
        return self.response

    async def download_mp3(self, body):
        return await self._answer("download_mp3", body)

    async def download_mp3_no_music(self, body):
        return await self._answer("download_mp3_no_music", body)

    async def download_all(self, body):
        return await self._answer("download_all", body)

    async def download_external(self, body):
        return await self._answer("download_external", body)


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def build_video(video_id: str, title: str | None = None) -> Video:
    return Video(
        id=video_id,
        url=f"https://www.youtube.com/watch?v={video_id}",
        title=title or f"Video {video_id}",
        original_filename=f"Video {video_id}.mp3",
        safe_filename=f"Video_{video_id}.mp3",
        folder_name="Channel",
    )


@pytest.fixture
def make_video():
    return build_video


@pytest.fixture
def gated_executor() -> GatedExecutor:
    return GatedExecutor()


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()


@pytest.fixture
def drain():
    return settle
