"""
Centralized error handling for the application.
"""

import json
from typing import Dict, Any

from video_recap.config import config
from video_recap.utils.logger import logging


class VideoRecapError(Exception):
    """Base class for all errors raised by the processing pipeline."""


class InvalidInputError(VideoRecapError):
    """Raised when a submitted job is rejected before it starts."""


class AcquisitionError(VideoRecapError):
    """Raised when audio cannot be obtained from the video source."""


class TranscodingError(VideoRecapError):
    """Raised when an ffmpeg or ffprobe process fails."""


class PayloadTooLargeError(VideoRecapError):
    """Raised when the speech-to-text service rejects an oversized upload."""


class TranscriptionError(VideoRecapError):
    """Raised when audio could not be transcribed by any strategy."""


class TranslationError(VideoRecapError):
    """Raised when a single-pass translation fails."""


class SummarizationError(VideoRecapError):
    """Raised when a single-pass summary fails."""


class StreamClosedError(VideoRecapError):
    """Raised when an event is emitted on a closed progress stream."""


class JobCancelledError(VideoRecapError):
    """Raised when the caller went away and the job should stop."""


def is_payload_too_large(error: Exception) -> bool:
    """
    Check whether an error is a 413 response from the transcription service.

    Args:
        error: The exception raised by the client call

    Returns:
        True when the error reports an oversized payload
    """
    if isinstance(error, PayloadTooLargeError):
        return True
    if getattr(error, "status_code", None) == 413:
        return True
    return "413" in str(error)


def describe_error(error: Exception) -> str:
    """Return the message shown to the caller for an unexpected error."""
    message = str(error).strip()
    return message or error.__class__.__name__


def log_diagnostic_info(context: Dict[str, Any]):
    """
    Log diagnostic information for debugging.

    Args:
        context: Dictionary of diagnostic information
    """
    if not config.DEBUG:
        return

    try:
        logging.info(f"Diagnostic info: {json.dumps(context, default=str)}")
    except (TypeError, ValueError) as e:
        logging.error(f"Error logging diagnostic info: {str(e)}")
