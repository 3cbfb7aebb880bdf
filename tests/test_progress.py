"""
Tests for the progress emitter and its wire format.
"""

import asyncio
import json

import pytest

from video_recap.core.context import JobContext
from video_recap.core.progress import ProgressEmitter, format_sse
from video_recap.models.schemas import PipelineStage, StatusEvent, StatusUpdate, SummaryEvent
from video_recap.utils.error_handling import JobCancelledError, StreamClosedError


async def collect(emitter: ProgressEmitter):
    return [line async for line in emitter.stream()]


def test_format_sse_is_compact_json_with_data_prefix():
    event = StatusEvent(status=StatusUpdate(step=3, message="Transcribing chunk 1/2..."))

    line = format_sse(event)

    assert line.startswith("data: ")
    assert line.endswith("\n\n")
    assert json.loads(line[len("data: "):]) == {"status": {"step": 3, "message": "Transcribing chunk 1/2..."}}
    assert ", " not in line and '": ' not in line


def test_format_sse_uses_is_error_alias():
    event = StatusEvent(status=StatusUpdate(step=1, message="boom", is_error=True))
    assert json.loads(format_sse(event)[6:]) == {"status": {"step": 1, "message": "boom", "isError": True}}


@pytest.mark.asyncio
async def test_events_arrive_in_emission_order():
    emitter = ProgressEmitter()
    for i in range(20):
        emitter.status(1, f"message {i}")
    emitter.transcript("partial")
    emitter.summary("done")
    emitter.close()

    lines = await collect(emitter)

    payloads = [json.loads(line[6:]) for line in lines]
    assert [p["status"]["message"] for p in payloads[:20]] == [f"message {i}" for i in range(20)]
    assert payloads[20] == {"transcript": "partial"}
    assert payloads[21] == {"summary": "done"}


@pytest.mark.asyncio
async def test_fail_emits_error_then_closes():
    emitter = ProgressEmitter()
    emitter.status(2, "compressing")
    emitter.fail(RuntimeError("ffmpeg exploded"))

    lines = await collect(emitter)

    assert json.loads(lines[-1][6:]) == {"error": "ffmpeg exploded"}
    assert emitter.closed


@pytest.mark.asyncio
async def test_emit_after_close_is_rejected():
    emitter = ProgressEmitter()
    emitter.close()

    with pytest.raises(StreamClosedError):
        emitter.summary("too late")


@pytest.mark.asyncio
async def test_consumer_sees_events_while_producer_runs():
    emitter = ProgressEmitter()

    async def produce():
        for i in range(3):
            emitter.transcript("word " * (i + 1))
            await asyncio.sleep(0)
        emitter.close()

    producer = asyncio.create_task(produce())
    events = [event async for event in emitter.events()]
    await producer

    assert [len(e.transcript) for e in events] == sorted(len(e.transcript) for e in events)


@pytest.mark.asyncio
async def test_threadsafe_emission_keeps_order():
    emitter = ProgressEmitter()

    def worker():
        for i in range(5):
            emitter.emit_threadsafe(SummaryEvent(summary=str(i)))

    await asyncio.to_thread(worker)
    emitter.close()

    events = [event async for event in emitter.events()]
    assert [e.summary for e in events] == ["0", "1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_context_steps_never_move_backwards(job, drain):
    emitter = ProgressEmitter()
    context = JobContext(job, emitter)

    context.status(PipelineStage.TRANSCRIBE, "transcribing")
    context.status(PipelineStage.COMPRESS, "late compression message")

    steps = [event.status.step for event in drain(emitter)]
    assert steps == [3, 3]


@pytest.mark.asyncio
async def test_context_stops_after_cancel(job):
    emitter = ProgressEmitter()
    context = JobContext(job, emitter)
    context.ensure_active()

    emitter.cancel()

    with pytest.raises(JobCancelledError):
        context.ensure_active()
