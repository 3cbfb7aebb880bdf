# -*- coding: utf-8 -*-
"""
Chat handler for answering questions about a processed video.
"""

from typing import Optional

from video_recap.config import config
from video_recap.core.llm import GroqChatClient
from video_recap.core.prompts import chat_system_template
from video_recap.utils.logger import logging

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 500
NO_ANSWER = "Sorry, I could not generate a response."


class ChatHandler(GroqChatClient):
    """Answers one question at a time from a video's summary and transcript."""

    async def get_chat_response(
        self,
        message: str,
        summary: Optional[str] = None,
        transcript: Optional[str] = None,
    ) -> str:
        """
        Answer a user question about the video.

        Args:
            message: The user question
            summary: Summary shown to the user, if any
            transcript: Transcript text; only its beginning is sent

        Returns:
            The assistant answer
        """
        if not message or not message.strip():
            raise ValueError("Message is required")

        if transcript:
            transcript_context = transcript[:config.CHAT_TRANSCRIPT_CHARS] + "..."
        else:
            transcript_context = "No transcript available"

        logging.info(f"Answering chat question ({len(message)} characters)")
        answer = await self.complete(
            chat_system_template,
            "{message}",
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
            summary=summary or "No summary available",
            transcript=transcript_context,
            message=message,
        )
        return answer or NO_ANSWER
