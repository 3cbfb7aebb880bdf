"""
Command line entry point for the video recap application.
"""

import argparse
import asyncio
from pathlib import Path
from dotenv import load_dotenv

from video_recap.core.pipeline import VideoRecapPipeline
from video_recap.core.progress import ProgressEmitter
from video_recap.models.schemas import Job, Language, StatusEvent, TranscriptEvent, SummaryEvent, ErrorEvent
from video_recap.utils.helpers import truncate_text


def build_cli_job(source: str, language: str) -> Job:
    """Create a job from a URL or a path to a local MP4 file."""
    path = Path(source)
    if path.is_file():
        if path.suffix.lower() != ".mp4":
            raise ValueError("Only MP4 files are supported")
        return Job(file_bytes=path.read_bytes(), file_name=path.name, language=Language(language))
    return Job(source_url=source, language=Language(language))


async def recap_video(job: Job, pipeline: VideoRecapPipeline = None, as_json: bool = False) -> int:
    """
    Run one job and print its events as they arrive.

    Returns:
        Process exit code
    """
    pipeline = pipeline or VideoRecapPipeline()
    emitter = ProgressEmitter()
    task = asyncio.create_task(pipeline.run(job, emitter))

    exit_code = 0
    async for event in emitter.events():
        if as_json:
            print(event.model_dump_json(by_alias=True, exclude_none=True), flush=True)
        elif isinstance(event, StatusEvent):
            print(f"[{event.status.step}/5] {event.status.message}", flush=True)
        elif isinstance(event, TranscriptEvent):
            print(f"  transcript: {truncate_text(event.transcript, 120)}", flush=True)
        elif isinstance(event, SummaryEvent):
            print("\n" + "=" * 80)
            print(event.summary)
            print("=" * 80)
        elif isinstance(event, ErrorEvent):
            print(f"ERROR: {event.error}", flush=True)
            exit_code = 1

    await task
    return exit_code


def main():
    """Main function to run the application from command line."""
    parser = argparse.ArgumentParser(description="Video Recap")
    parser.add_argument("source", help="YouTube video URL or path to an MP4 file")
    parser.add_argument("--language", choices=[lang.value for lang in Language], default="en",
                        help="Language of the summary")
    parser.add_argument("--json", action="store_true", help="Print raw JSON events")

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()

    try:
        job = build_cli_job(args.source, args.language)
    except ValueError as e:
        parser.error(str(e))

    raise SystemExit(asyncio.run(recap_video(job, as_json=args.json)))


if __name__ == "__main__":
    main()
