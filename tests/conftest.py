"""
Configuration for pytest tests.
"""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock

os.environ["GROQ_API_KEY"] = os.environ.get("GROQ_API_KEY", "test_api_key")
os.environ["ENVIRONMENT"] = "development"

from pydantic import BaseModel  # noqa: E402

from video_recap.config import config  # noqa: E402
from video_recap.core.context import JobContext  # noqa: E402
from video_recap.core.progress import ProgressEmitter  # noqa: E402
from video_recap.models.schemas import Job, Language  # noqa: E402


@pytest.fixture(autouse=True)
def temp_media_dir(tmp_path, monkeypatch):
    """Route every temporary media file into a per-test directory."""
    media_dir = tmp_path / "media"
    media_dir.mkdir()
    monkeypatch.setattr(config, "TEMP_DIR", media_dir)
    return media_dir


@pytest.fixture
def test_video_url():
    """Return a test YouTube video URL."""
    return "https://youtu.be/V3TUEeB0kW0?si=-InVol0JhtWji-6R"


@pytest.fixture
def job(test_video_url):
    return Job(source_url=test_video_url, language=Language.EN)


@pytest.fixture
async def emitter():
    return ProgressEmitter()


@pytest.fixture
async def ctx(job, emitter):
    return JobContext(job, emitter)


@pytest.fixture
def drain():
    """Return a function collecting every event emitted so far, without waiting."""
    def _drain(emitter: ProgressEmitter):
        events = []
        while not emitter._queue.empty():
            item = emitter._queue.get_nowait()
            if isinstance(item, BaseModel):
                events.append(item)
        return events
    return _drain


@pytest.fixture
def llm_reply():
    """Return a factory for mock chat models whose ainvoke yields replies in order."""
    def _llm_reply(*contents):
        model = MagicMock()
        responses = []
        for content in contents:
            if isinstance(content, Exception):
                responses.append(content)
            else:
                response = MagicMock()
                response.content = content
                responses.append(response)
        model.ainvoke = AsyncMock(side_effect=responses)
        return model
    return _llm_reply
