#!/usr/bin/env python3
"""
mp3queue - queue MP3 extractions on the download backend and run them one at a time
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from mp3queue.backend import BackendClient
from mp3queue.dispatcher import Dispatcher
from mp3queue.env import LOG_LEVEL
from mp3queue.errors import DownloaderError
from mp3queue.notifier import ArtifactEvent, ErrorEvent
from mp3queue.segment import SegmentSelection
from mp3queue.session import DownloaderSession
from mp3queue.task_executor import TaskExecutor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mp3queue", description=__doc__.strip())
    parser.add_argument("url", help="channel, playlist or video URL")
    parser.add_argument(
        "--mode",
        choices=["simple", "no-music", "batch"],
        default=None,
        help="how to extract every listed video (default: simple)",
    )
    parser.add_argument(
        "--segment",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        help="only extract START..END seconds of each video",
    )
    parser.add_argument("--external", action="store_true", help="treat URL as a non-catalogued source")
    parser.add_argument("--filename", help="output name for --external")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="logging level")
    return parser


async def run(args: argparse.Namespace) -> int:
    client = BackendClient()
    dispatcher = Dispatcher(TaskExecutor(client))
    session = DownloaderSession(client, dispatcher)

    def on_artifact(event: ArtifactEvent) -> None:
        print(f"{event.artifact_path}\t{client.download_url(event.artifact_path)}")

    def on_error(event: ErrorEvent) -> None:
        print(event.message, file=sys.stderr)

    dispatcher.notifier.subscribe(on_artifact=on_artifact, on_error=on_error)

    try:
        if args.external:
            session.download_external(args.url, args.filename)
        else:
            videos = await session.fetch_videos(args.url)
            if args.mode == "batch":
                session.download_all()
            else:
                for video in videos:
                    if args.segment:
                        start, end = args.segment
                        selection = SegmentSelection(start=start, end=end, duration=max(start, end))
                        session.download_segment(video, selection)
                    elif args.mode == "no-music":
                        session.download_no_music(video)
                    else:
                        session.download(video)

        await dispatcher.join()
    except DownloaderError as e:
        logger.error(f"{e}")
        return 1
    finally:
        await session.aclose()
        await client.aclose()

    notifier = dispatcher.notifier
    logger.info(f"{notifier.completed} file(s) downloaded, {len(notifier.errors)} failed")
    return 1 if notifier.errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.external and (args.mode or args.segment):
        parser.error("--mode and --segment cannot be used with --external")
    if args.filename and not args.external:
        parser.error("--filename requires --external")
    if args.segment and args.mode not in (None, "simple"):
        parser.error(f"--segment cannot be used with --mode {args.mode}")
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
