"""
Job-scoped state threaded through every pipeline stage.
"""

from typing import Optional

from video_recap.core.progress import ProgressEmitter
from video_recap.models.schemas import Job, PipelineStage, StatusEvent, StatusUpdate
from video_recap.utils.error_handling import JobCancelledError
from video_recap.utils.logger import logging


class JobContext:
    """
    Carries one job and its emitter through the pipeline.

    Nothing here is shared between jobs: each request builds its own context,
    so the running transcript and step tracking stay isolated.
    """

    def __init__(self, job: Job, emitter: ProgressEmitter):
        self.job = job
        self.emitter = emitter

    def status(self, stage: PipelineStage, message: str, is_error: Optional[bool] = None) -> None:
        """Report progress for ``stage``. Steps never move backwards within a job."""
        if stage < self.job.stage:
            logging.warning(f"Status for step {int(stage)} reported during step {int(self.job.stage)}: {message}")
            stage = self.job.stage
        self.job.stage = stage
        self.emitter.status(int(stage), message, is_error)

    def status_threadsafe(self, stage: PipelineStage, message: str) -> None:
        """Report progress from a worker thread."""
        self.emitter.emit_threadsafe(StatusEvent(status=StatusUpdate(step=int(stage), message=message)))

    def publish_transcript(self, text: str) -> None:
        """Record and emit a transcript snapshot."""
        self.job.transcript = text
        self.emitter.transcript(text)

    def publish_summary(self, text: str) -> None:
        self.job.summary = text
        self.emitter.summary(text)

    def ensure_active(self) -> None:
        """Stop the job between units once the caller has disconnected."""
        if self.emitter.cancelled:
            raise JobCancelledError("Caller disconnected")
