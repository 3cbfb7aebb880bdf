"""
Heuristic language detection and conditional translation of transcripts.
"""

import re

from video_recap.config import config
from video_recap.core.context import JobContext
from video_recap.core.llm import GroqChatClient
from video_recap.core.prompts import translation_system_template
from video_recap.models.schemas import Language, PipelineStage, TextChunk
from video_recap.utils.error_handling import TranslationError
from video_recap.utils.helpers import count_words
from video_recap.utils.logger import logging

TRANSLATE = PipelineStage.TRANSLATE

FRENCH_INDICATORS = (
    "le", "la", "les", "de", "du", "des", "et", "est", "une", "un", "dans", "pour",
    "avec", "sur", "par", "ce", "cette", "qui", "que", "mais", "ou", "où", "donc",
    "car", "si", "comme", "tout", "tous", "toute", "toutes", "très", "plus", "moins",
    "bien", "encore", "aussi", "déjà", "jamais", "toujours", "peut", "peuvent",
    "faire", "avoir", "être", "aller", "venir", "voir", "savoir", "dire", "prendre",
    "donner", "partir", "sortir", "entrer", "monter", "descendre",
)

_FRENCH_PATTERN = re.compile(r"\b(?:" + "|".join(FRENCH_INDICATORS) + r")\b", re.IGNORECASE)

TRANSLATION_TEMPERATURE = 0.1
SINGLE_PASS_MAX_TOKENS = 2000
CHUNK_MAX_TOKENS = 1500
CHUNK_SEPARATOR = " "


def count_french_indicators(text: str) -> int:
    """Count occurrences of common French function words, case-insensitively."""
    return len(_FRENCH_PATTERN.findall(text))


def detect_language(text: str) -> Language:
    """
    Classify text as French or English.

    French needs strictly more than the threshold of indicator words; anything
    else, including other languages, counts as English.
    """
    if count_french_indicators(text) > config.FRENCH_DETECTION_THRESHOLD:
        return Language.FR
    return Language.EN


class TranscriptTranslator(GroqChatClient):
    """Translate transcripts between English and French when they mismatch the recap language."""

    async def translate_if_needed(self, ctx: JobContext, text: str, target: Language) -> str:
        """
        Return ``text`` in the ``target`` language, translating only on a mismatch.

        Args:
            ctx: Job context for progress reporting
            text: Transcript text
            target: Requested recap language

        Returns:
            Translated text, or ``text`` unchanged when no translation is needed
        """
        ctx.status(
            TRANSLATE,
            f"Analyzing transcript language ({count_words(text)} words, {len(text)} characters)...",
        )
        detected = detect_language(text)
        ctx.status(
            TRANSLATE,
            f"Detected language: {detected.display_name}. Target recap language: {target.display_name}",
        )

        if detected == target:
            ctx.status(
                TRANSLATE,
                f"No translation needed - transcript and recap are both in {target.display_name}",
            )
            return text

        ctx.status(
            TRANSLATE,
            f"Translation needed: {detected.display_name} → {target.display_name}. Starting translation...",
        )
        return await self.translate(ctx, text, target)

    async def translate(self, ctx: JobContext, text: str, target: Language) -> str:
        """Translate in one call, or segment by segment when the text is long."""
        if len(text) > config.MAX_TEXT_CHUNK_CHARS:
            return await self.translate_in_chunks(ctx, text, target)

        ctx.status(TRANSLATE, f"Translating to {target.display_name}...")
        try:
            translation = await self._translate_once(text, target, SINGLE_PASS_MAX_TOKENS)
        except Exception as e:
            raise TranslationError(f"Failed to translate text: {e}") from e

        ctx.status(TRANSLATE, f"Translation to {target.display_name} completed")
        return translation or text

    async def translate_in_chunks(self, ctx: JobContext, text: str, target: Language) -> str:
        """
        Translate sentence-bounded chunks in order and join them.

        A chunk whose translation fails is kept in its original language.
        """
        ctx.status(TRANSLATE, f"Preparing translation to {target.display_name}...")
        chunks = TextChunk.split(text, config.MAX_TEXT_CHUNK_CHARS)
        ctx.status(TRANSLATE, f"Translating {len(chunks)} text segments to {target.display_name}...")

        translated = []
        for chunk in chunks:
            ctx.ensure_active()
            ctx.status(
                TRANSLATE,
                f"Translating segment {chunk.index + 1}/{len(chunks)} to {target.display_name}...",
            )
            translated.append(await self._translate_chunk(chunk, target))

        ctx.status(TRANSLATE, f"Translation to {target.display_name} completed")
        return CHUNK_SEPARATOR.join(translated)

    async def _translate_chunk(self, chunk: TextChunk, target: Language) -> str:
        try:
            translation = await self._translate_once(chunk.text, target, CHUNK_MAX_TOKENS)
        except Exception as e:
            logging.error(f"Translation error for chunk {chunk.index + 1}: {e}")
            return chunk.text
        return translation or chunk.text

    async def _translate_once(self, text: str, target: Language, max_tokens: int) -> str:
        return await self.complete(
            translation_system_template,
            "{text}",
            temperature=TRANSLATION_TEMPERATURE,
            max_tokens=max_tokens,
            language_name=target.display_name,
            text=text,
        )
