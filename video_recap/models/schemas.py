"""
Data models for the video recap application.
"""
import re
from enum import Enum, IntEnum
from typing import Optional, List, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from video_recap.config import config
from langchain_text_splitters import RecursiveCharacterTextSplitter

YOUTUBE_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.|m\.)?(youtube\.com/(watch\?v=|embed/|v/|shorts/)|youtu\.be/)[\w-]+"
)

SENTENCE_SEPARATORS = [". ", "! ", "? ", " ", ""]


def validate_youtube_url(url: str) -> str:
    """Reject anything that does not look like a YouTube video URL."""
    if not url or not YOUTUBE_URL_PATTERN.match(url.strip()):
        raise ValueError("Invalid YouTube URL")
    return url.strip()


class Language(str, Enum):
    """Languages a recap can be produced in."""
    EN = "en"
    FR = "fr"

    @property
    def display_name(self) -> str:
        return "English" if self is Language.EN else "French"


class PipelineStage(IntEnum):
    """Progress labels for the pipeline steps. Compression may be skipped."""
    ACQUIRE = 1
    COMPRESS = 2
    TRANSCRIBE = 3
    TRANSLATE = 4
    SUMMARIZE = 5


class MediaDownloadConfig(BaseModel):
    """Configuration for YouTube audio acquisition."""
    url: str

    @field_validator('url')
    def validate_url(cls, v):
        return validate_youtube_url(v)


class MediaInfo(BaseModel):
    """Metadata of the video being processed."""
    video_id: str = ""
    title: str
    author: str = ""
    length_seconds: int = 0

    model_config = {"from_attributes": True}


class AudioChunk(BaseModel):
    """A fixed-duration slice of audio, transcribed independently."""
    index: int = Field(ge=0)
    start_time: float
    end_time: float
    audio: bytes = b""
    text: Optional[str] = None


class TextChunk(BaseModel):
    """A sentence-bounded slice of text for translation or summarization."""
    index: int = Field(ge=0)
    text: str

    @classmethod
    def split(cls, text: str, max_chars: int = config.MAX_TEXT_CHUNK_CHARS) -> List["TextChunk"]:
        """Pack the sentences of ``text`` into ordered chunks under ``max_chars``."""
        if not text.strip():
            return []
        # Split after terminal punctuation first, falling back to words for run-on sentences
        text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=max_chars,
            chunk_overlap=0,
            separators=SENTENCE_SEPARATORS,
            keep_separator="end",
            length_function=len,
        )
        return [cls(index=i, text=chunk) for i, chunk in enumerate(text_splitter.split_text(text))]


class Job(BaseModel):
    """One processing request. Lives exactly as long as its stream."""
    source_url: Optional[str] = None
    file_bytes: Optional[bytes] = None
    file_name: Optional[str] = None
    audio_filename: str = "audio.mp3"
    language: Language = Language.EN
    stage: PipelineStage = PipelineStage.ACQUIRE
    transcript: str = ""
    summary: Optional[str] = None

    @field_validator('source_url')
    def validate_source_url(cls, v):
        if v is None:
            return v
        return validate_youtube_url(v)

    @model_validator(mode="after")
    def check_single_source(self):
        if (self.source_url is None) == (self.file_bytes is None):
            raise ValueError("Exactly one of a video URL or an uploaded file is required")
        return self


class TranscriptionConfig(BaseModel):
    """Configuration for transcription operations."""
    model: str = config.DEFAULT_TRANSCRIPTION_MODEL
    response_format: str = "json"
    temperature: float = 0.0


class SummaryConfig(BaseModel):
    """Configuration for summarization operations."""
    model: str = config.DEFAULT_SUMMARY_MODEL
    temperature: float = 0.3
    max_tokens: int = 300
    chunk_max_tokens: int = 150
    max_chunk_chars: int = config.MAX_TEXT_CHUNK_CHARS


class StatusUpdate(BaseModel):
    """Body of a status event."""
    model_config = ConfigDict(populate_by_name=True)

    step: int
    message: str
    is_error: Optional[bool] = Field(default=None, alias="isError")


class StatusEvent(BaseModel):
    status: StatusUpdate


class TranscriptEvent(BaseModel):
    transcript: str


class SummaryEvent(BaseModel):
    summary: str


class ErrorEvent(BaseModel):
    error: str


ProgressEvent = Union[StatusEvent, TranscriptEvent, SummaryEvent, ErrorEvent]
