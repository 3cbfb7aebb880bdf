"""
Audio acquisition from YouTube URLs and uploaded MP4 files.
"""

import asyncio
import io
import traceback
from typing import Callable, Optional

from pytubefix import YouTube
from pytubefix.exceptions import AgeRestrictedError, VideoUnavailable

from video_recap.core.context import JobContext
from video_recap.core.media import probe_duration, temp_media_files, transcode
from video_recap.models.schemas import MediaDownloadConfig, MediaInfo, PipelineStage
from video_recap.utils.error_handling import AcquisitionError, TranscodingError
from video_recap.utils.helpers import format_megabytes
from video_recap.utils.logger import logging

ACCESS_RESTRICTED_MESSAGE = (
    "YouTube blocked the request (403). This video may be restricted or age-gated. "
    "Try: 1) A different video, 2) Upload the MP4 file directly instead."
)

ChunkCallback = Callable[[int], None]


class YouTubeDownloader:
    """Class to handle downloading YouTube audio into memory."""

    def __init__(self, config: MediaDownloadConfig, on_chunk: Optional[ChunkCallback] = None):
        """
        Initialize the YouTube downloader with configuration.

        Args:
            config: Configuration for download operations
            on_chunk: Called with the cumulative downloaded byte count
        """
        self.config = config
        self.on_chunk = on_chunk
        self.downloaded_bytes = 0
        self.audio_extension = "mp3"
        self.yt =YouTube(config.url, on_progress_callback=self._on_progress)

    def _on_progress(self, stream, chunk: bytes, bytes_remaining: int):
        self.downloaded_bytes += len(chunk)
        if self.on_chunk:
            self.on_chunk(self.downloaded_bytes)

    def get_media_info(self) -> MediaInfo:
        """Extract metadata from YouTube video."""
        return MediaInfo(
            video_id=self.yt.video_id,
            title=self.yt.title,
            author=self.yt.author,
            length_seconds=self.yt.length or 0,
        )

    def download_audio(self) -> bytes:
        """
        Download the highest bitrate audio-only stream.

        Returns:
            Raw audio bytes
        """
        audio_stream = self.yt.streams.filter(only_audio=True).order_by('abr').last()
        if audio_stream is None:
            raise AcquisitionError("No audio-only stream is available for this video")

        # mp4 audio-only streams are AAC, which transcription services expect as m4a
        self.audio_extension = "m4a" if audio_stream.subtype == "mp4" else audio_stream.subtype
        logging.info(f"Downloading audio: {self.yt.title}")
        buffer = io.BytesIO()
        audio_stream.stream_to_buffer(buffer)
        return buffer.getvalue()


def describe_download_error(error: Exception) -> str:
    """Turn a download failure into an actionable message for the caller."""
    message = str(error)
    if isinstance(error, AgeRestrictedError) or "403" in message:
        return ACCESS_RESTRICTED_MESSAGE
    if isinstance(error, VideoUnavailable):
        return f"This video is unavailable: {message}"
    return f"Failed to download audio: {message or error.__class__.__name__}"


async def acquire_from_url(ctx: JobContext, url: str) -> bytes:
    """Fetch the audio of a YouTube video, reporting title and download progress."""
    stage = PipelineStage.ACQUIRE
    ctx.status(stage, "Connecting to YouTube...")

    def report_bytes(downloaded: int):
        ctx.status_threadsafe(stage, f"Downloading audio... {format_megabytes(downloaded)}MB")

    try:
        download_config = MediaDownloadConfig(url=url)
        ctx.status(stage, "Fetching video information...")
        downloader = await asyncio.to_thread(YouTubeDownloader, download_config, report_bytes)
        info = await asyncio.to_thread(downloader.get_media_info)
        ctx.status(stage, f'Found: "{info.title}" ({info.length_seconds // 60} min)')

        ctx.status(stage, "Starting audio download...")
        audio = await asyncio.to_thread(downloader.download_audio)
        ctx.job.audio_filename = f"audio.{downloader.audio_extension}"
    except AcquisitionError:
        raise
    except Exception as e:
        logging.error(f"YouTube download failed for {url}: {e}")
        logging.error(traceback.format_exc())
        raise AcquisitionError(describe_download_error(e)) from e

    ctx.status(stage, f"Audio download completed ({format_megabytes(len(audio))}MB)")
    return audio


async def acquire_from_upload(ctx: JobContext, file_bytes: bytes) -> bytes:
    """
    Extract a compact speech-ready audio track from an uploaded MP4.

    The video is re-encoded to 32 kbps mono 16 kHz MP3. Both temporary files
    are removed whether or not ffmpeg succeeds.
    """
    stage = PipelineStage.ACQUIRE
    ctx.status(stage, "Processing uploaded video file...")

    try:
        with temp_media_files("upload.mp4", "audio.mp3") as (input_path, output_path):
            await asyncio.to_thread(input_path.write_bytes, file_bytes)
            ctx.status(stage, f"Extracting audio from {format_megabytes(len(file_bytes))}MB video file...")

            try:
                total_seconds = await probe_duration(input_path)
            except TranscodingError as e:
                logging.warning(f"Could not probe uploaded file, progress disabled: {e}")
                total_seconds = None

            await transcode(
                input_path,
                output_path,
                codec="libmp3lame",
                output_format="mp3",
                bitrate="32k",
                channels=1,
                sample_rate=16000,
                total_seconds=total_seconds,
                on_progress=lambda fraction: ctx.status(
                    stage, f"Extracting audio... {round(fraction * 100)}%"
                ),
            )
            audio = await asyncio.to_thread(output_path.read_bytes)
    except Exception as e:
        logging.error(f"Audio extraction failed: {e}")
        raise AcquisitionError(f"Failed to extract audio from file: {e}") from e

    ctx.status(stage, f"Audio extraction completed ({format_megabytes(len(audio))}MB)")
    return audio


async def acquire_audio(ctx: JobContext) -> bytes:
    """Obtain raw audio for the job from whichever source it was submitted with."""
    job = ctx.job
    if job.file_bytes is not None:
        return await acquire_from_upload(ctx, job.file_bytes)
    if job.source_url:
        return await acquire_from_url(ctx, job.source_url)
    raise AcquisitionError("No video source provided")
