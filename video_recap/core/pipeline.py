"""
End-to-end processing of one video: acquire, transcribe, translate, summarize.
"""

import traceback
from typing import Optional

from video_recap.core.context import JobContext
from video_recap.core.progress import ProgressEmitter
from video_recap.core.summarizer import TranscriptSummarizer
from video_recap.core.transcriber import TranscriptionStrategist
from video_recap.core.translator import TranscriptTranslator
from video_recap.core.youtube_downloader import acquire_audio
from video_recap.models.schemas import Job, PipelineStage
from video_recap.utils.error_handling import (
    AcquisitionError,
    JobCancelledError,
    StreamClosedError,
    log_diagnostic_info,
)
from video_recap.utils.logger import logging


class VideoRecapPipeline:
    """Runs jobs through every stage, reporting through each job's emitter."""

    def __init__(
        self,
        strategist: Optional[TranscriptionStrategist] = None,
        translator: Optional[TranscriptTranslator] = None,
        summarizer: Optional[TranscriptSummarizer] = None,
    ):
        self.strategist = strategist or TranscriptionStrategist()
        self.translator = translator or TranscriptTranslator()
        self.summarizer = summarizer or TranscriptSummarizer()

    async def process(self, ctx: JobContext) -> str:
        """
        Run all stages for the job in ``ctx``.

        Returns:
            The final summary
        """
        job = ctx.job

        audio = await acquire_audio(ctx)
        ctx.ensure_active()

        transcript = await self.strategist.transcribe(ctx, audio)
        ctx.ensure_active()

        transcript = await self.translator.translate_if_needed(ctx, transcript, job.language)
        ctx.publish_transcript(transcript)
        ctx.status(PipelineStage.TRANSLATE, "Transcript completed! Now generating summary...")
        ctx.ensure_active()

        summary = await self.summarizer.summarize(ctx, transcript, job.language)
        ctx.publish_summary(summary)
        return summary

    async def run(self, job: Job, emitter: ProgressEmitter) -> None:
        """
        Process a job and always end its stream.

        The stream closes normally after the summary, or with a final error
        event when anything escapes the stages.
        """
        ctx = JobContext(job, emitter)
        try:
            await self.process(ctx)
        except (JobCancelledError, StreamClosedError):
            logging.info(f"Job stopped at step {int(job.stage)}: the caller disconnected")
            return
        except AcquisitionError as e:
            logging.error(f"Acquisition failed: {e}")
            emitter.fail(e)
            return
        except Exception as e:
            logging.error(f"Processing error at step {int(job.stage)}: {e}")
            logging.error(traceback.format_exc())
            log_diagnostic_info({
                "stage": int(job.stage),
                "source": job.source_url or job.file_name,
                "transcript_chars": len(job.transcript),
                "error_type": e.__class__.__name__,
            })
            emitter.fail(e)
            return
        emitter.close()
