from pydantic import BaseModel, Field
from typing import Optional


class ProcessVideoRequest(BaseModel):
    """Model for requesting a recap of a YouTube video."""
    url: Optional[str] = None
    recap_language: str = Field(default="en", alias="recapLanguage")

    model_config = {"populate_by_name": True}


class ChatRequest(BaseModel):
    """Model for chat requests."""
    message: str = ""
    context: Optional[str] = None
    transcript: Optional[str] = None


class ChatResponse(BaseModel):
    """Model for chat responses."""
    response: str
