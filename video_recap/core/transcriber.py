"""
Module for transcribing audio using Groq's speech-to-text API.

Audio is turned into text by the first applicable strategy of an ordered
chain: long audio goes straight to chunked streaming, short audio that fits
the upload limit is sent in one call, oversized short audio is compressed
first. Strategies that cannot finish hand over to the next one.
"""

import asyncio
import math
import os
from pathlib import Path
from typing import List, Optional

from groq import AsyncGroq

from video_recap.config import config
from video_recap.core.context import JobContext
from video_recap.core.media import probe_duration, temp_media_files, transcode
from video_recap.models.schemas import AudioChunk, PipelineStage, TranscriptionConfig
from video_recap.utils.error_handling import (
    JobCancelledError,
    PayloadTooLargeError,
    StreamClosedError,
    TranscodingError,
    TranscriptionError,
    is_payload_too_large,
)
from video_recap.utils.helpers import count_words, format_megabytes, truncate_text
from video_recap.utils.logger import logging

TRANSCRIBE = PipelineStage.TRANSCRIBE


class AudioTranscriber:
    """Class to handle calls to the speech-to-text service."""

    def __init__(
        self, transcribe_config: Optional[TranscriptionConfig] = None, api_key: Optional[str] = None
    ):
        """
        Initialize the transcriber with API key.

        Args:
            transcribe_config: Model and decoding settings
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.transcribe_config = transcribe_config or TranscriptionConfig()
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Groq API key is required. Set it in .env file or pass directly."
            )

        self.client = AsyncGroq(api_key=self.api_key)

    async def transcribe_bytes(self, audio: bytes, filename: str) -> str:
        """
        Transcribe an in-memory audio file. No language hint is sent.

        Args:
            audio: Encoded audio bytes
            filename: Name whose extension tells the service the format

        Returns:
            Recognized text
        """
        logging.info(f"Transcribing {filename} ({format_megabytes(len(audio), 2)}MB)")
        try:
            transcription = await self.client.audio.transcriptions.create(
                file=(filename, audio),
                model=self.transcribe_config.model,
                response_format=self.transcribe_config.response_format,
                temperature=self.transcribe_config.temperature,
            )
        except Exception as e:
            if is_payload_too_large(e):
                raise PayloadTooLargeError(str(e)) from e
            raise
        return transcription.text or ""


def estimate_duration_seconds(size_in_bytes: int) -> int:
    """Rough duration of an audio buffer, assuming 16 kHz mono 16-bit samples."""
    return math.ceil(size_in_bytes / config.BYTES_PER_SECOND_ESTIMATE)


def plan_audio_chunks(duration: float, chunk_seconds: int = config.CHUNK_SECONDS) -> List[AudioChunk]:
    """
    Partition ``duration`` seconds into fixed-length chunks.

    The last chunk is truncated to the remaining duration.
    """
    total = math.ceil(duration / chunk_seconds) if duration > 0 else 0
    return [
        AudioChunk(
            index=i,
            start_time=i * chunk_seconds,
            end_time=min((i + 1) * chunk_seconds, duration),
        )
        for i in range(total)
    ]


def assemble_transcript(chunks: List[AudioChunk]) -> str:
    """Join chunk texts by index. Empty or failed chunks contribute nothing."""
    texts = (chunk.text.strip() for chunk in sorted(chunks, key=lambda c: c.index) if chunk.text)
    return " ".join(text for text in texts if text)


def _extension(filename: str) -> str:
    return Path(filename).suffix.lstrip(".") or "mp3"


async def compress_audio(ctx: JobContext, audio: bytes) -> bytes:
    """
    Re-encode audio to 12 kbps mono 16 kHz Opus to fit the upload limit.

    Raises:
        TranscodingError: If ffmpeg fails
    """
    stage = PipelineStage.COMPRESS
    original_mb = format_megabytes(len(audio), 2)
    ctx.status(stage, f"Compressing {original_mb}MB audio file...")

    input_spec = f"compress_input.{_extension(ctx.job.audio_filename)}"
    with temp_media_files(input_spec, "compress_output.ogg") as (input_path, output_path):
        await asyncio.to_thread(input_path.write_bytes, audio)
        ctx.status(stage, "Running FFmpeg compression...")
        try:
            total_seconds = await probe_duration(input_path)
        except TranscodingError:
            total_seconds = None

        await transcode(
            input_path,
            output_path,
            codec="libopus",
            output_format="ogg",
            bitrate="12k",
            channels=1,
            sample_rate=16000,
            total_seconds=total_seconds,
            on_progress=lambda fraction: ctx.status(
                stage, f"Compressing audio... {round(fraction * 100)}%"
            ),
        )
        compressed = await asyncio.to_thread(output_path.read_bytes)

    ctx.status(stage, f"Audio compressed: {original_mb}MB → {format_megabytes(len(compressed), 2)}MB")
    return compressed


class StrategyFallback(Exception):
    """Raised by a strategy that cannot finish; the next strategy takes over."""


class TranscriptionStrategy:
    """One way of turning an audio buffer into text."""

    name = "strategy"

    def __init__(self, transcriber: AudioTranscriber):
        self.transcriber = transcriber

    def applies(self, audio: bytes) -> bool:
        return True

    async def run(self, ctx: JobContext, audio: bytes) -> str:
        raise NotImplementedError


class DirectStrategy(TranscriptionStrategy):
    """Send the whole buffer in a single call."""

    name = "direct"

    def applies(self, audio: bytes) -> bool:
        return len(audio) <= config.MAX_UPLOAD_BYTES

    async def run(self, ctx: JobContext, audio: bytes) -> str:
        size_mb = format_megabytes(len(audio))
        ctx.status(TRANSCRIBE, f"Starting transcription of {size_mb}MB audio file...")
        ctx.status(TRANSCRIBE, f"Short video ({size_mb}MB) - using direct transcription")
        return await self._send(ctx, audio, ctx.job.audio_filename)

    async def _send(self, ctx: JobContext, audio: bytes, filename: str) -> str:
        ctx.status(TRANSCRIBE, "Sending audio to the transcription service...")
        ctx.status(TRANSCRIBE, "The transcription service is processing the audio (this may take a few minutes)...")
        try:
            text = await self.transcriber.transcribe_bytes(audio, filename)
        except PayloadTooLargeError as e:
            logging.warning(f"Direct transcription rejected as too large: {e}")
            raise StrategyFallback(
                "File still too large for the transcription API - switching to streaming method as fallback"
            ) from e
        except Exception as e:
            logging.error(f"Direct transcription failed ({format_megabytes(len(audio), 2)}MB): {e}")
            raise TranscriptionError(f"Failed to transcribe audio: {e}") from e

        ctx.status(
            TRANSCRIBE,
            f"Direct transcription completed! Generated {count_words(text)} words ({len(text)} characters)",
        )
        return text


class CompressThenDirectStrategy(DirectStrategy):
    """Compress an oversized short buffer, then send it in a single call."""

    name = "compress-then-direct"

    def applies(self, audio: bytes) -> bool:
        return len(audio) > config.MAX_UPLOAD_BYTES

    async def run(self, ctx: JobContext, audio: bytes) -> str:
        try:
            compressed = await compress_audio(ctx, audio)
        except (JobCancelledError, StreamClosedError):
            raise
        except Exception as e:
            logging.error(f"Audio compression failed: {e}")
            raise StrategyFallback("Audio compression failed - switching to streaming method") from e

        compressed_mb = format_megabytes(len(compressed))
        if len(compressed) > config.MAX_UPLOAD_BYTES:
            raise StrategyFallback(
                f"Compression insufficient ({compressed_mb}MB still > 25MB) - switching to streaming method"
            )

        ctx.status(TRANSCRIBE, f"Compression successful ({compressed_mb}MB) - proceeding with direct transcription")
        return await self._send(ctx, compressed, "audio.ogg")


class StreamingStrategy(TranscriptionStrategy):
    """
    Transcribe fixed 30 second chunks one after another.

    Chunks are processed sequentially so the running transcript can be
    emitted after every chunk in index order. A failed chunk is recorded as
    empty and skipped.
    """

    name = "streaming"

    def __init__(self, transcriber: AudioTranscriber, chunk_seconds: int = config.CHUNK_SECONDS):
        super().__init__(transcriber)
        self.chunk_seconds = chunk_seconds

    async def run(self, ctx: JobContext, audio: bytes) -> str:
        ctx.status(
            TRANSCRIBE,
            f"Streaming mode: processing {format_megabytes(len(audio))}MB audio with real-time transcription",
        )
        try:
            input_spec = f"stream_input.{_extension(ctx.job.audio_filename)}"
            with temp_media_files(input_spec) as (input_path,):
                await asyncio.to_thread(input_path.write_bytes, audio)
                duration = await probe_duration(input_path)
                chunks = plan_audio_chunks(duration, self.chunk_seconds)
                ctx.status(
                    TRANSCRIBE,
                    f"Audio duration: {int(duration // 60)}m {round(duration % 60)}s. "
                    f"Creating {len(chunks)} streaming chunks...",
                )

                cumulative = ""
                for chunk in chunks:
                    ctx.ensure_active()
                    chunk.text = await self._transcribe_chunk(ctx, input_path, chunk, len(chunks))
                    if chunk.text.strip():
                        cumulative = f"{cumulative} {chunk.text}" if cumulative else chunk.text
                        ctx.publish_transcript(cumulative)
        except (JobCancelledError, StreamClosedError):
            raise
        except Exception as e:
            raise TranscriptionError(f"Failed to stream transcribe audio: {e}") from e

        transcript = assemble_transcript(chunks)
        ctx.status(
            TRANSCRIBE,
            f"Streaming transcription completed! Total: {count_words(transcript)} words from {len(chunks)} chunks",
        )
        ctx.publish_transcript(transcript)
        return transcript

    async def _transcribe_chunk(
        self, ctx: JobContext, input_path: Path, chunk: AudioChunk, total: int
    ) -> str:
        label = f"{chunk.index + 1}/{total}"
        ctx.status(
            TRANSCRIBE,
            f"Creating chunk {label} ({round(chunk.start_time)}s-{round(chunk.end_time)}s)...",
        )
        try:
            with temp_media_files(f"chunk_{chunk.index}.wav") as (chunk_path,):
                await transcode(
                    input_path,
                    chunk_path,
                    codec="pcm_s16le",
                    output_format="wav",
                    channels=1,
                    sample_rate=16000,
                    start=chunk.start_time,
                    duration=self.chunk_seconds,
                )
                chunk.audio = await asyncio.to_thread(chunk_path.read_bytes)

            ctx.status(TRANSCRIBE, f"Transcribing chunk {label}...")
            text = await self.transcriber.transcribe_bytes(chunk.audio, f"chunk_{chunk.index}.wav")
        except (JobCancelledError, StreamClosedError):
            raise
        except Exception as e:
            logging.error(f"Error processing chunk {chunk.index + 1}: {e}")
            return ""
        finally:
            chunk.audio = b""

        ctx.status(
            TRANSCRIBE,
            f'Chunk {label} completed ({count_words(text)} words) - "{truncate_text(text, 53)}"',
        )
        return text


class LongAudioStreamingStrategy(StreamingStrategy):
    """Streaming, chosen up front for audio estimated longer than a minute."""

    name = "long-audio-streaming"

    def applies(self, audio: bytes) -> bool:
        return estimate_duration_seconds(len(audio)) > config.SHORT_AUDIO_SECONDS

    async def run(self, ctx: JobContext, audio: bytes) -> str:
        estimated = estimate_duration_seconds(len(audio))
        ctx.status(
            TRANSCRIBE,
            f"Video duration ~{estimated // 60}m {estimated % 60}s - using streaming transcription for faster results",
        )
        return await super().run(ctx, audio)


def default_strategies(transcriber: AudioTranscriber) -> List[TranscriptionStrategy]:
    """The strategy chain, in evaluation order."""
    return [
        LongAudioStreamingStrategy(transcriber),
        DirectStrategy(transcriber),
        CompressThenDirectStrategy(transcriber),
        StreamingStrategy(transcriber),
    ]


class TranscriptionStrategist:
    """Walks the strategy chain top-down until one produces a transcript."""

    def __init__(
        self,
        transcriber: Optional[AudioTranscriber] = None,
        strategies: Optional[List[TranscriptionStrategy]] = None,
    ):
        self.transcriber = transcriber or AudioTranscriber()
        self.strategies = strategies if strategies is not None else default_strategies(self.transcriber)

    async def transcribe(self, ctx: JobContext, audio: bytes) -> str:
        """
        Convert an audio buffer to text.

        Raises:
            TranscriptionError: If no strategy could produce a transcript
        """
        for strategy in self.strategies:
            if not strategy.applies(audio):
                continue
            logging.info(f"Transcribing {len(audio)} bytes with the {strategy.name} strategy")
            try:
                return await strategy.run(ctx, audio)
            except StrategyFallback as fallback:
                logging.warning(f"{strategy.name} strategy handed over: {fallback}")
                ctx.status(TRANSCRIBE, str(fallback))

        raise TranscriptionError("No transcription strategy could handle this audio")
