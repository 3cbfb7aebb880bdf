"""
Shared access to Groq chat models through LangChain.
"""

import os
from typing import Any, Optional

from langchain.chat_models import init_chat_model
from langchain_core.prompts import ChatPromptTemplate

from video_recap.config import config


class GroqChatClient:
    """Base class for components that issue chat completions."""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        """
        Initialize the client with API key.

        Args:
            model: Groq model name (defaults to the configured summary model)
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.model = model or config.DEFAULT_SUMMARY_MODEL
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if not self.api_key:
            raise ValueError("Groq API key is required. Set it in .env file or pass directly.")

        os.environ["GROQ_API_KEY"] = self.api_key

    def get_llm(self, temperature: float, max_tokens: int):
        return init_chat_model(
            model=self.model,
            model_provider="groq",
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def complete(
        self,
        system_template: str,
        user_template: str,
        temperature: float,
        max_tokens: int,
        **variables: Any,
    ) -> str:
        """
        Run one system + user exchange and return the reply text.

        Args:
            system_template: System message template
            user_template: User message template
            temperature: Sampling temperature
            max_tokens: Completion token budget
            variables: Values for the template placeholders

        Returns:
            Reply text, stripped; empty when the model returned nothing
        """
        prompt = ChatPromptTemplate.from_messages([
            ("system", system_template),
            ("human", user_template),
        ])
        llm = self.get_llm(temperature, max_tokens)
        response = await llm.ainvoke(prompt.format_messages(**variables))
        return (response.content or "").strip()
