"""Tests for the command line entry point."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from mp3queue import main
from mp3queue.errors import DownloaderError, FatalError, TransportError
from mp3queue.models import Video


class FakeClient:
    instances: List["FakeClient"] = []

    def __init__(self) -> None:
        self.calls: List[tuple[str, Dict[str, Any]]] = []
        self.fail_for: set[str] = set()
        self.closed = False
        FakeClient.instances.append(self)

    async def fetch_videos(self, url: str) -> List[Video]:
        return [
            Video(id=video_id, url=f"https://www.youtube.com/watch?v={video_id}", title=video_id,
                  original_filename=f"{video_id}.mp3", safe_filename=f"{video_id}.mp3")
            for video_id in ("a", "b")
        ]

    async def download_mp3(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("download_mp3", body))
        if body["videoUrl"].endswith(tuple(self.fail_for)):
            raise TransportError("boom")
        return {"file": body["safeFilename"], "skipped": False}

    async def download_all(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("download_all", body))
        return {"file": "all.zip", "skipped": False}

    async def download_external(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("download_external", body))
        return {"file": "ext.mp3", "skipped": True}

    def download_url(self, relative_path: str) -> str:
        return f"http://backend.test/download-file?file={relative_path}"

    async def aclose(self) -> None:
        self.closed = True


def setup_fake(monkeypatch) -> None:
    FakeClient.instances = []
    monkeypatch.setattr(main, "BackendClient", FakeClient)


def test_main_downloads_every_listed_video(monkeypatch, capsys) -> None:
    setup_fake(monkeypatch)

    exit_code = main.main(["https://www.youtube.com/@chan"])

    client = FakeClient.instances[0]
    assert exit_code == 0
    assert [body["videoUrl"][-1] for _, body in client.calls] == ["a", "b"]
    assert client.closed
    out = capsys.readouterr().out
    assert "a.mp3\thttp://backend.test/download-file?file=a.mp3" in out


def test_main_batch_mode(monkeypatch) -> None:
    setup_fake(monkeypatch)

    exit_code = main.main(["https://www.youtube.com/@chan", "--mode", "batch"])

    assert exit_code == 0
    assert [name for name, _ in FakeClient.instances[0].calls] == ["download_all"]


def test_main_segment_passes_range(monkeypatch) -> None:
    setup_fake(monkeypatch)

    exit_code = main.main(["https://www.youtube.com/@chan", "--segment", "10", "400"])

    assert exit_code == 0
    bodies = [body for _, body in FakeClient.instances[0].calls]
    assert {(body["startTime"], body["endTime"]) for body in bodies} == {(10, 400)}


def test_main_external(monkeypatch) -> None:
    setup_fake(monkeypatch)

    exit_code = main.main(["https://example.com/talk.mp4", "--external", "--filename", "talk"])

    assert exit_code == 0
    assert FakeClient.instances[0].calls == [
        ("download_external", {"url": "https://example.com/talk.mp4", "filename": "talk"})
    ]


def test_main_reports_failures(monkeypatch, capsys) -> None:
    setup_fake(monkeypatch)
    original_init = FakeClient.__init__

    def failing_init(self) -> None:
        original_init(self)
        self.fail_for = {"a"}

    monkeypatch.setattr(FakeClient, "__init__", failing_init)

    exit_code = main.main(["https://www.youtube.com/@chan"])

    assert exit_code == 1
    assert len(FakeClient.instances[0].calls) == 2
    assert 'Failed to download "a"' in capsys.readouterr().err


def test_main_rejects_invalid_segment(monkeypatch) -> None:
    setup_fake(monkeypatch)

    exit_code = main.main(["https://www.youtube.com/@chan", "--segment", "50", "20"])

    assert exit_code == 1
    assert FakeClient.instances[0].calls == []


@pytest.mark.parametrize(
    "argv",
    [
        ["https://www.youtube.com/@chan", "--mode", "batch", "--segment", "10", "20"],
        ["https://www.youtube.com/@chan", "--mode", "no-music", "--segment", "10", "20"],
        ["https://example.com/a.mp4", "--external", "--mode", "batch"],
        ["https://example.com/a.mp4", "--external", "--segment", "10", "20"],
        ["https://www.youtube.com/@chan", "--filename", "talk"],
    ],
)
def test_main_rejects_conflicting_flags(monkeypatch, argv) -> None:
    setup_fake(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        main.main(argv)

    assert excinfo.value.code == 2
    assert FakeClient.instances == []


def test_main_lets_fatal_errors_through(monkeypatch) -> None:
    setup_fake(monkeypatch)

    class BrokenExecutor:
        def __init__(self, client) -> None:
            pass

        async def execute(self, task):
            raise FatalError(f"Unknown task kind for {task.id}")

    monkeypatch.setattr(main, "TaskExecutor", BrokenExecutor)

    with pytest.raises(FatalError):
        main.main(["https://www.youtube.com/@chan"])
    assert FakeClient.instances[0].closed


def test_fatal_error_is_not_a_recoverable_error() -> None:
    assert not issubclass(FatalError, DownloaderError)
