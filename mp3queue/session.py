import asyncio
import logging
from typing import List, Optional, Set
from urllib.parse import parse_qs, urlparse

from mp3queue.backend import BackendClient
from mp3queue.dispatcher import Dispatcher
from mp3queue.env import DELETE_DELAY_SECONDS
from mp3queue.errors import InputError, TransportError
from mp3queue.models import BATCH_ID, Task, Video
from mp3queue.segment import SegmentSelection


def is_single_video(url: str) -> bool:
    return "watch?v=" in url


def single_video(url: str) -> Video:
    """Describe a watch?v= URL without asking the backend"""
    try:
        video_id = parse_qs(urlparse(url).query).get("v", [""])[0]
    except ValueError as e:
        raise InputError(f"Invalid video URL: {url}") from e
    if not video_id:
        raise InputError(f"No video id in URL: {url}")
    return Video(
        id=video_id,
        url=url,
        title="Single Video",
        original_filename=f"Single Video_{video_id}.mp3",
        safe_filename=f"SingleVideo_{video_id}.mp3",
        folder_name="SingleVideo",
    )


class DownloaderSession:
    """Builds tasks from user actions and hands them to the dispatcher"""

    def __init__(
        self,
        client: BackendClient,
        dispatcher: Dispatcher,
        delete_delay: float = DELETE_DELAY_SECONDS,
    ):
        self.client = client
        self.dispatcher = dispatcher
        self.delete_delay = delete_delay
        self.videos: List[Video] = []
        self.downloads: List[str] = []
        self._deferred: Set[asyncio.Task] = set()
        self.logger = logging.getLogger(f"{__name__}.DownloaderSession")

    async def fetch_videos(self, url: str) -> List[Video]:
        """Replace the current list with the videos behind a URL"""
        if not url or not url.strip():
            raise InputError("Please enter a YouTube URL")
        url = url.strip()

        self.dispatcher.notifier.reset()
        if is_single_video(url):
            self.videos = [single_video(url)]
        else:
            self.videos = await self.client.fetch_videos(url)
        self.logger.info(f"Found {len(self.videos)} video(s)")
        return self.videos

    def download(self, video: Video) -> Optional[Task]:
        return self._submit(Task.simple(video))

    def download_no_music(self, video: Video) -> Optional[Task]:
        return self._submit(Task.no_music(video))

    def download_segment(self, video: Video, selection: SegmentSelection) -> Optional[Task]:
        return self._submit(Task.segment(video, selection.start, selection.end))

    def download_all(self) -> Optional[Task]:
        if not self.videos:
            raise InputError("No videos to download, fetch a list first")
        return self._submit(Task.batch(self.videos))

    def download_external(self, url: str, filename: Optional[str] = None) -> Task:
        task = Task.external(url, filename)
        self.dispatcher.enqueue(task)
        return task

    def cancel(self, entity_id: str) -> bool:
        return self.dispatcher.cancel(entity_id)

    def is_downloading(self, entity_id: str) -> bool:
        return self.dispatcher.statuses().get(entity_id) is not None

    def batch_running(self) -> bool:
        return self.is_downloading(BATCH_ID)

    async def refresh_downloads(self) -> List[str]:
        self.downloads = await self.client.list_downloads()
        return self.downloads

    async def delete_file(self, relative_path: str) -> List[str]:
        await self.client.delete_file(relative_path)
        return await self.refresh_downloads()

    def download_link(self, relative_path: str) -> str:
        return self.client.download_url(relative_path)

    def download_and_delete(self, relative_path: str) -> str:
        """Return the download link and delete the file after a delay"""
        link = self.download_link(relative_path)
        deferred = asyncio.get_running_loop().create_task(self._delete_later(relative_path))
        self._deferred.add(deferred)
        deferred.add_done_callback(self._deferred.discard)
        return link

    async def wait_deferred(self) -> None:
        if self._deferred:
            await asyncio.gather(*list(self._deferred), return_exceptions=True)

    async def aclose(self) -> None:
        for deferred in list(self._deferred):
            self.logger.warning("Cancelling a pending deferred deletion")
            deferred.cancel()
        await self.wait_deferred()
        await self.dispatcher.aclose()

    def _submit(self, task: Task) -> Optional[Task]:
        if self.is_downloading(task.id):
            status = self.dispatcher.status(task.id)
            self.logger.warning(f"{task.id} is already {status.value}, not queueing it again")
            return None
        self.dispatcher.enqueue(task)
        return task

    async def _delete_later(self, relative_path: str) -> None:
        await asyncio.sleep(self.delete_delay)
        try:
            await self.delete_file(relative_path)
        except TransportError as e:
            self.logger.error(f"Error deleting {relative_path}: {e}")
