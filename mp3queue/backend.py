import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from mp3queue.env import BACKEND_URL, REQUEST_TIMEOUT
from mp3queue.errors import TransportError
from mp3queue.models import Video


class BackendClient:
    """Async client for the extraction backend"""

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.logger = logging.getLogger(f"{__name__}.BackendClient")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def fetch_videos(self, channel_url: str) -> List[Video]:
        """List the videos of a channel or playlist"""
        data = await self._request("POST", "/fetch-videos", json={"channelUrl": channel_url})
        videos = [Video.from_json(item) for item in data.get("videos") or []]
        self.logger.info(f"Fetched {len(videos)} video(s) for {channel_url}")
        return videos

    async def download_mp3(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/download-mp3", json=body)

    async def download_mp3_no_music(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/download-mp3-no-music", json=body)

    async def download_all(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/download-all", json=body)

    async def download_external(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/download-external", json=body)

    async def list_downloads(self) -> List[str]:
        data = await self._request("GET", "/list-downloads")
        return [str(item) for item in data.get("files") or []]

    async def delete_file(self, relative_path: str) -> Dict[str, Any]:
        data = await self._request("DELETE", "/delete-file", params={"file": relative_path})
        self.logger.info(f"Deleted {relative_path}")
        return data

    def download_url(self, relative_path: str) -> str:
        """Direct link to an artifact on the backend"""
        return f"{self.base_url}/download-file?file={quote(relative_path, safe='')}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        self.logger.debug(f"{method} {path}")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            raise TransportError(str(data["error"]), response.status_code)
        if response.is_error:
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}",
                response.status_code,
            )
        if not isinstance(data, dict):
            raise TransportError(f"{method} {path} returned a malformed response", response.status_code)
        return data
