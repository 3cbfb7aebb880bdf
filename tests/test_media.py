"""
Tests for the ffmpeg wrapper and temporary file handling.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from video_recap.core.media import _parse_progress_seconds, probe_duration, temp_media_files, transcode
from video_recap.utils.error_handling import TranscodingError


def fake_process(returncode=0, stdout=b"", stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=-9)
    return process


class Lines:
    """Async line iterator standing in for a process stdout pipe."""

    def __init__(self, lines):
        self._lines = iter(lines)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._lines)
        except StopIteration:
            raise StopAsyncIteration


def test_parse_progress_seconds():
    assert _parse_progress_seconds("out_time_us=15000000") == 15.0
    assert _parse_progress_seconds("out_time_ms=2500000") == 2.5
    assert _parse_progress_seconds("out_time_us=N/A") is None
    assert _parse_progress_seconds("progress=continue") is None


def test_temp_media_files_are_removed(temp_media_dir):
    with temp_media_files("upload.mp4", "audio.mp3") as (video, audio):
        assert video.suffix == ".mp4"
        assert audio.suffix == ".mp3"
        assert video != audio
        video.write_bytes(b"video")
        audio.write_bytes(b"audio")

    assert list(temp_media_dir.iterdir()) == []


def test_temp_media_files_are_removed_on_error(temp_media_dir):
    with pytest.raises(RuntimeError):
        with temp_media_files("chunk.mp3") as (path,):
            path.write_bytes(b"partial")
            raise RuntimeError("ffmpeg crashed")

    assert list(temp_media_dir.iterdir()) == []


def test_temp_media_files_do_not_collide():
    with temp_media_files("chunk.mp3") as (first,), temp_media_files("chunk.mp3") as (second,):
        assert first != second


@pytest.mark.asyncio
async def test_probe_duration(tmp_path):
    process = fake_process(stdout=b"42.5\n")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        assert await probe_duration(tmp_path / "a.mp3") == 42.5


@pytest.mark.asyncio
async def test_probe_duration_without_duration(tmp_path):
    process = fake_process(stdout=b"N/A\n")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        assert await probe_duration(tmp_path / "a.mp3") == 0.0


@pytest.mark.asyncio
async def test_probe_duration_failure(tmp_path):
    process = fake_process(returncode=1, stderr=b"Invalid data found")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(TranscodingError, match="Invalid data found"):
            await probe_duration(tmp_path / "a.mp3")


@pytest.mark.asyncio
async def test_transcode_builds_slice_command(tmp_path):
    process = fake_process()
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
        await transcode(
            tmp_path / "in.mp3",
            tmp_path / "out.mp3",
            codec="libmp3lame",
            output_format="mp3",
            start=30,
            duration=10,
        )

    command = list(mock_exec.call_args.args)
    assert command[command.index("-ss") + 1] == "30"
    assert command[command.index("-t") + 1] == "10"
    assert command[command.index("-acodec") + 1] == "libmp3lame"
    assert "-progress" not in command
    assert command[-1] == str(tmp_path / "out.mp3")


@pytest.mark.asyncio
async def test_transcode_reports_progress(tmp_path):
    process = fake_process()
    process.stdout = Lines([b"out_time_us=5000000\n", b"progress=continue\n", b"out_time_us=20000000\n"])
    fractions = []

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
        await transcode(
            tmp_path / "in.mp4",
            tmp_path / "out.mp3",
            codec="libmp3lame",
            output_format="mp3",
            total_seconds=10,
            on_progress=fractions.append,
        )

    assert "-progress" in mock_exec.call_args.args
    assert fractions == [0.5, 1.0]


@pytest.mark.asyncio
async def test_transcode_failure(tmp_path):
    process = fake_process(returncode=1, stderr=b"Unknown encoder")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(TranscodingError, match="Unknown encoder"):
            await transcode(tmp_path / "in.mp3", tmp_path / "out.ogg", codec="libopus", output_format="ogg")


@pytest.mark.asyncio
async def test_transcode_kills_ffmpeg_when_progress_callback_raises(tmp_path):
    process = fake_process(returncode=None)
    process.stdout = Lines([b"out_time_us=1000000\n", b"out_time_us=2000000\n"])

    def on_progress(fraction):
        raise RuntimeError("stream closed")

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(RuntimeError, match="stream closed"):
            await transcode(
                tmp_path / "in.mp4",
                tmp_path / "out.mp3",
                codec="libmp3lame",
                output_format="mp3",
                total_seconds=10,
                on_progress=on_progress,
            )

    process.kill.assert_called_once()
    process.wait.assert_awaited_once()
    process.communicate.assert_not_awaited()


@pytest.mark.asyncio
async def test_transcode_kills_ffmpeg_when_cancelled(tmp_path):
    process = fake_process(returncode=None)
    process.communicate = AsyncMock(side_effect=asyncio.CancelledError)

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(asyncio.CancelledError):
            await transcode(tmp_path / "in.mp3", tmp_path / "out.ogg", codec="libopus", output_format="ogg")

    process.kill.assert_called_once()
    process.wait.assert_awaited_once()


@pytest.mark.asyncio
async def test_finished_process_is_not_killed(tmp_path):
    process = fake_process(stdout=b"12.0\n")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        await probe_duration(tmp_path / "a.mp3")

    process.kill.assert_not_called()
