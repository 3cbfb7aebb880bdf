"""
Thin async wrapper around the ffmpeg and ffprobe command line tools.
"""

import asyncio
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from video_recap.config import config
from video_recap.utils.error_handling import TranscodingError
from video_recap.utils.helpers import unique_temp_path
from video_recap.utils.logger import logging

ProgressCallback = Callable[[float], None]


@contextmanager
def temp_media_files(*specs: str) -> Iterator[List[Path]]:
    """
    Reserve unique temporary file paths and delete them on every exit path.

    Args:
        specs: ``"prefix.ext"`` strings, one per file

    Yields:
        Paths in the order of ``specs``
    """
    paths = []
    for spec in specs:
        prefix, _, extension = spec.rpartition(".")
        paths.append(unique_temp_path(config.TEMP_DIR, prefix, extension))
    try:
        yield paths
    finally:
        for path in paths:
            remove_quietly(path)


def remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove temporary file {path}: {e}")


def _parse_progress_seconds(line: str) -> Optional[float]:
    # ffmpeg reports both keys in microseconds
    key, _, value = line.partition("=")
    if key not in ("out_time_us", "out_time_ms"):
        return None
    try:
        return int(value) / 1_000_000
    except ValueError:
        return None


async def _kill_if_running(process) -> None:
    # No media process outlives the call that started it
    if process.returncode is not None:
        return
    logging.warning(f"Killing unfinished media process {process.pid}")
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


async def probe_duration(path: Path) -> float:
    """
    Read the exact duration of a media file in seconds.

    Returns 0.0 when the container does not declare a duration.
    """
    process = await asyncio.create_subprocess_exec(
        config.FFPROBE_BINARY,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await process.communicate()
    finally:
        await _kill_if_running(process)
    if process.returncode != 0:
        raise TranscodingError(f"ffprobe failed: {stderr.decode(errors='replace').strip()}")

    value = stdout.decode().strip()
    try:
        return float(value)
    except ValueError:
        logging.warning(f"ffprobe reported no duration for {path}: {value!r}")
        return 0.0


async def transcode(
    input_path: Path,
    output_path: Path,
    *,
    codec: str,
    output_format: str,
    bitrate: Optional[str] = None,
    channels: int = 1,
    sample_rate: int = 16000,
    start: Optional[float] = None,
    duration: Optional[float] = None,
    total_seconds: Optional[float] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Path:
    """
    Re-encode the audio track of ``input_path`` into ``output_path``.

    The video track, if any, is dropped.

    Args:
        input_path: Source media file
        output_path: Destination file, overwritten if present
        codec: ffmpeg audio codec name (e.g. ``libopus``)
        output_format: ffmpeg container format (e.g. ``ogg``)
        bitrate: Target audio bitrate (e.g. ``12k``)
        channels: Number of output channels
        sample_rate: Output sample rate in Hz
        start: Offset in seconds to seek to before reading
        duration: Maximum seconds of audio to write
        total_seconds: Expected output length, needed for progress reporting
        on_progress: Called with the completed fraction in [0, 1]

    Returns:
        ``output_path``
    """
    command = [config.FFMPEG_BINARY, "-y", "-hide_banner", "-loglevel", "error"]
    if start is not None:
        command += ["-ss", str(start)]
    command += ["-i", str(input_path), "-vn"]
    if duration is not None:
        command += ["-t", str(duration)]
    command += ["-acodec", codec]
    if bitrate:
        command += ["-b:a", bitrate]
    command += ["-ac", str(channels), "-ar", str(sample_rate), "-f", output_format]

    report_progress = on_progress is not None and bool(total_seconds)
    if report_progress:
        command += ["-progress", "pipe:1", "-nostats"]
    command.append(str(output_path))

    logging.debug(f"Running: {' '.join(command)}")
    process = await asyncio.create_subprocess_exec(
        *command,
        stdout=asyncio.subprocess.PIPE if report_progress else asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        if report_progress:
            async for raw_line in process.stdout:
                seconds = _parse_progress_seconds(raw_line.decode(errors="replace").strip())
                if seconds is not None:
                    on_progress(min(max(seconds / total_seconds, 0.0), 1.0))

        _, stderr = await process.communicate()
    finally:
        await _kill_if_running(process)

    if process.returncode != 0:
        message = stderr.decode(errors="replace").strip() if stderr else "unknown error"
        raise TranscodingError(f"ffmpeg exited with code {process.returncode}: {message}")
    return output_path
