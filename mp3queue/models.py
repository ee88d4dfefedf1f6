import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from mp3queue.cancellation import CancellationHandle
from mp3queue.env import DEFAULT_FOLDER
from mp3queue.errors import InputError

# Entity id used for the single "download everything listed" task
BATCH_ID = "__batch__"


class TaskKind(Enum):
    SEGMENT = "segment"
    SIMPLE = "simple"
    NO_MUSIC = "no_music"
    BATCH = "batch"
    EXTERNAL = "external"


class EntityStatus(Enum):
    IDLE = "idle"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"


@dataclass(frozen=True)
class Video:
    id: str
    url: str
    title: str
    original_filename: str
    safe_filename: str
    folder_name: str = DEFAULT_FOLDER
    thumbnail: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Video":
        """Build a video from a /fetch-videos entry"""
        try:
            video_id = str(data["id"])
            url = str(data["url"])
        except KeyError as e:
            raise InputError(f"Video entry is missing {e}") from e
        title = str(data.get("title") or video_id)
        return cls(
            id=video_id,
            url=url,
            title=title,
            original_filename=str(data.get("originalFilename") or f"{title}_{video_id}.mp3"),
            safe_filename=str(data.get("safeFilename") or f"{video_id}.mp3"),
            folder_name=str(data.get("folderName") or DEFAULT_FOLDER),
            thumbnail=data.get("thumbnail"),
        )

    def to_request(self) -> Dict[str, Any]:
        return {
            "videoUrl": self.url,
            "originalFilename": self.original_filename,
            "safeFilename": self.safe_filename,
            "folderName": self.folder_name or DEFAULT_FOLDER,
        }


@dataclass(frozen=True)
class ExtractPayload:
    source: Video
    start: Optional[float] = None
    end: Optional[float] = None


@dataclass(frozen=True)
class BatchPayload:
    sources: Tuple[Video, ...]


@dataclass(frozen=True)
class ExternalPayload:
    url: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class Task:
    """One queued extraction request.

    Tasks are immutable; whether a task was cancelled is read from its
    handle, never from the task itself.
    """

    id: str
    kind: TaskKind
    payload: Any
    handle: CancellationHandle = field(default_factory=CancellationHandle, compare=False)

    @property
    def kind_name(self) -> str:
        return getattr(self.kind, "value", str(self.kind))

    @property
    def label(self) -> str:
        if isinstance(self.payload, ExtractPayload):
            return self.payload.source.title
        if isinstance(self.payload, BatchPayload):
            return f"all {len(self.payload.sources)} videos"
        if isinstance(self.payload, ExternalPayload):
            return self.payload.filename or self.payload.url
        return self.id

    @property
    def video(self) -> Optional[Video]:
        if isinstance(self.payload, ExtractPayload):
            return self.payload.source
        return None

    @classmethod
    def segment(cls, video: Video, start: float, end: float) -> "Task":
        if start is None or end is None:
            raise InputError("Segment download needs both a start and an end time")
        if start < 0 or start >= end:
            raise InputError(f"Invalid segment {start}-{end} for \"{video.title}\"")
        return cls(id=video.id, kind=TaskKind.SEGMENT, payload=ExtractPayload(video, start, end))

    @classmethod
    def simple(cls, video: Video) -> "Task":
        return cls(id=video.id, kind=TaskKind.SIMPLE, payload=ExtractPayload(video))

    @classmethod
    def no_music(cls, video: Video) -> "Task":
        return cls(id=video.id, kind=TaskKind.NO_MUSIC, payload=ExtractPayload(video))

    @classmethod
    def batch(cls, videos) -> "Task":
        sources = tuple(videos)
        if not sources:
            raise InputError("No videos to download")
        return cls(id=BATCH_ID, kind=TaskKind.BATCH, payload=BatchPayload(sources))

    @classmethod
    def external(cls, url: str, filename: Optional[str] = None) -> "Task":
        if not url or not url.strip():
            raise InputError("Please enter a URL")
        name = filename.strip() if filename and filename.strip() else None
        return cls(
            id=f"external-{uuid.uuid4().hex}",
            kind=TaskKind.EXTERNAL,
            payload=ExternalPayload(url.strip(), name),
        )


@dataclass(frozen=True)
class Result:
    artifact_path: str
    skipped: bool = False
