"""
Module for summarizing transcripts using LLM models.
"""

from typing import List, Optional

from video_recap.core.context import JobContext
from video_recap.core.llm import GroqChatClient
from video_recap.core.prompts import chunk_summary_prompts, final_summary_prompts, summary_prompts
from video_recap.models.schemas import Language, PipelineStage, SummaryConfig, TextChunk
from video_recap.config import config
from video_recap.utils.error_handling import SummarizationError
from video_recap.utils.logger import logging

SUMMARIZE = PipelineStage.SUMMARIZE


class TranscriptSummarizer(GroqChatClient):
    """Class to handle transcript summarization operations."""

    def __init__(self, summary_config: Optional[SummaryConfig] = None, api_key: Optional[str] = None):
        """
        Initialize the summarizer with API key.

        Args:
            summary_config: Model, temperature and token budgets
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.summary_config = summary_config or SummaryConfig()
        super().__init__(model=self.summary_config.model, api_key=api_key)

    async def summarize(self, ctx: JobContext, transcript_text: str, language: Language) -> str:
        """
        Summarize a transcript text.

        Short transcripts are summarized in one call. Longer ones are split
        into sentence-bounded chunks, each chunk is condensed on its own, and
        the chunk summaries are merged by a final call.

        Args:
            ctx: Job context for progress reporting
            transcript_text: Full transcript text to summarize
            language: Language the summary is written in

        Returns:
            Summarized text
        """
        if len(transcript_text) > self.summary_config.max_chunk_chars:
            return await self.summarize_in_chunks(ctx, transcript_text, language)

        ctx.status(SUMMARIZE, f"Generating AI summary in {language.display_name}...")
        prompts = summary_prompts[language.value]
        try:
            summary = await self.complete(
                prompts["system"],
                prompts["user"],
                temperature=self.summary_config.temperature,
                max_tokens=self.summary_config.max_tokens,
                text=transcript_text,
            )
        except Exception as e:
            raise SummarizationError(f"Failed to generate summary: {e}") from e

        if not summary:
            raise SummarizationError("Failed to generate summary: the model returned no text")

        ctx.status(SUMMARIZE, "Summary completed successfully!")
        return summary

    async def summarize_in_chunks(self, ctx: JobContext, transcript_text: str, language: Language) -> str:
        """Map each chunk to a short extract, then reduce the extracts to one summary."""
        ctx.status(SUMMARIZE, f"Preparing {language.display_name} summary...")
        chunks = TextChunk.split(transcript_text, self.summary_config.max_chunk_chars)
        ctx.status(SUMMARIZE, f"Creating summaries for {len(chunks)} text segments...")

        chunk_summaries = []
        for chunk in chunks:
            ctx.ensure_active()
            ctx.status(SUMMARIZE, f"Summarizing segment {chunk.index + 1}/{len(chunks)}...")
            chunk_summaries.append(await self._summarize_chunk(chunk, language))

        ctx.status(SUMMARIZE, "Creating final consolidated summary...")
        return await self._reduce(ctx, chunk_summaries, language)

    async def _summarize_chunk(self, chunk: TextChunk, language: Language) -> str:
        prompts = chunk_summary_prompts[language.value]
        try:
            summary = await self.complete(
                prompts["system"],
                prompts["user"],
                temperature=self.summary_config.temperature,
                max_tokens=self.summary_config.chunk_max_tokens,
                text=chunk.text,
            )
        except Exception as e:
            logging.error(f"Summary error for chunk {chunk.index + 1}: {e}")
            excerpt = chunk.text[:config.CHUNK_SUMMARY_FALLBACK_CHARS]
            return f"Segment {chunk.index + 1}: {excerpt}..."
        return summary or f"Segment {chunk.index + 1} summary unavailable"

    async def _reduce(self, ctx: JobContext, chunk_summaries: List[str], language: Language) -> str:
        consolidated = "\n\n".join(chunk_summaries)
        prompts = final_summary_prompts[language.value]
        try:
            final_summary = await self.complete(
                prompts["system"],
                prompts["user"],
                temperature=self.summary_config.temperature,
                max_tokens=self.summary_config.max_tokens,
                text=consolidated,
            )
        except Exception as e:
            logging.error(f"Final summary error: {e}")
            return consolidated

        ctx.status(SUMMARIZE, "Summary completed successfully!")
        return final_summary or consolidated
