"""
API routes for the video recap application.
"""

import asyncio
import traceback
from functools import lru_cache
from typing import Optional, Set

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from video_recap.api.schemas import ChatRequest, ChatResponse, ProcessVideoRequest
from video_recap.core.chat_handler import ChatHandler
from video_recap.core.pipeline import VideoRecapPipeline
from video_recap.core.progress import ProgressEmitter
from video_recap.models.schemas import Job, Language
from video_recap.utils.error_handling import InvalidInputError
from video_recap.utils.logger import logging

router = APIRouter(prefix="/api/v1", tags=["video"])

# Strong references to running jobs, so a job whose caller left can finish its current unit.
_running_jobs: Set[asyncio.Task] = set()

MISSING_KEY_MESSAGE = "Groq API key not configured. Please set GROQ_API_KEY environment variable."


@lru_cache(maxsize=1)
def get_pipeline() -> VideoRecapPipeline:
    """Shared pipeline; each job still gets its own context."""
    try:
        return VideoRecapPipeline()
    except ValueError as e:
        logging.error(f"Cannot build pipeline: {e}")
        raise HTTPException(status_code=500, detail=MISSING_KEY_MESSAGE)


@lru_cache(maxsize=1)
def get_chat_handler() -> ChatHandler:
    try:
        return ChatHandler()
    except ValueError as e:
        logging.error(f"Cannot build chat handler: {e}")
        raise HTTPException(status_code=500, detail=MISSING_KEY_MESSAGE)


def parse_language(value: Optional[str]) -> Language:
    try:
        return Language((value or "en").lower())
    except ValueError:
        raise InvalidInputError(f"Unsupported recap language: {value}")


def build_job(**fields) -> Job:
    """Create a job, turning validation failures into input errors."""
    try:
        return Job(**fields)
    except ValidationError as e:
        messages = [error["msg"].removeprefix("Value error, ") for error in e.errors()]
        raise InvalidInputError("; ".join(messages))


def stream_job(job: Job, pipeline: VideoRecapPipeline) -> StreamingResponse:
    """Start the job and stream its events as server-sent events."""

    async def event_stream():
        emitter = ProgressEmitter()
        task = asyncio.create_task(pipeline.run(job, emitter))
        _running_jobs.add(task)
        task.add_done_callback(_running_jobs.discard)
        try:
            async for line in emitter.stream():
                yield line
        finally:
            if not task.done():
                logging.info("Client disconnected, stopping job after the current unit")
                emitter.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post("/process-video")
async def process_video(
    request: ProcessVideoRequest,
    pipeline: VideoRecapPipeline = Depends(get_pipeline),
):
    """
    Transcribe and summarize a YouTube video.

    Responds with a stream of progress events ending with the summary or an error.
    """
    if not request.url:
        raise InvalidInputError("YouTube URL is required")

    language = parse_language(request.recap_language)
    job = build_job(source_url=request.url, language=language)
    logging.info(f"Starting job for {job.source_url} ({language.value})")
    return stream_job(job, pipeline)


@router.post("/process-video/upload")
async def process_uploaded_video(
    file: Optional[UploadFile] = File(None),
    recapLanguage: str = Form("en"),
    pipeline: VideoRecapPipeline = Depends(get_pipeline),
):
    """Transcribe and summarize an uploaded MP4 video."""
    if file is None:
        raise InvalidInputError("Video file is required")
    if "mp4" not in (file.content_type or ""):
        raise InvalidInputError("Only MP4 files are supported")

    language = parse_language(recapLanguage)
    file_bytes = await file.read()
    if not file_bytes:
        raise InvalidInputError("Video file is required")

    job = build_job(file_bytes=file_bytes, file_name=file.filename, language=language)
    logging.info(f"Starting job for upload {file.filename} ({len(file_bytes)} bytes)")
    return stream_job(job, pipeline)


@router.post("/chat", response_model=ChatResponse)
async def chat_with_video(
    chat_request: ChatRequest,
    handler: ChatHandler = Depends(get_chat_handler),
):
    """Answer a question about a processed video using its summary and transcript."""
    try:
        answer = await handler.get_chat_response(
            message=chat_request.message,
            summary=chat_request.context,
            transcript=chat_request.transcript,
        )
        return ChatResponse(response=answer)
    except ValueError as e:
        logging.error(f"Value error in chat: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logging.error(f"Error generating response: {str(e)}")
        logging.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to process chat message")
