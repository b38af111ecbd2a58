"""
Pytest configuration and fixtures for the entire test suite.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.content_department.creation_tools.article_generator import ArticleGenerator
from app.content_department.creation_tools.transcript_refiner import TranscriptRefiner
from app.content_department.pipeline import TranscriptPipeline
from app.data.data_classes import TranscriptSegment
from app.data.result_cache import ResultCache
from app.data.transcript_manager import TranscriptManager
from app.data.transcript_providers import BaseTranscriptProvider
from app.main import create_app


class FakeProvider(BaseTranscriptProvider):
    """In-memory provider returning canned segments or raising a canned error."""

    def __init__(
        self,
        name: str = "fake",
        is_alternative: bool = False,
        segments: Optional[List[TranscriptSegment]] = None,
        error: Optional[Exception] = None,
        title: Optional[str] = None,
        text_query=None,
    ):
        super().__init__(text_query)
        self.name = name
        self.is_alternative = is_alternative
        self.segments = segments or []
        self.error = error
        self.title = title
        self.fetch_calls = []

    async def fetch_transcript(self, video_id: str, language: str = "en"):
        self.fetch_calls.append((video_id, language))
        if self.error is not None:
            raise self.error
        return list(self.segments)

    async def check_availability(self, video_id: str) -> Dict[str, Any]:
        return {"exists": self.title is not None, "title": self.title}


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def text_query():
    """Mock XAITextQuery whose get_response is an AsyncMock."""
    query = Mock()
    query.is_configured = True
    query.get_response = AsyncMock(return_value="")
    return query


@pytest.fixture
def test_settings():
    return Settings(
        xai_api_key=None,
        cache_check_period=3600,
        composition_retry_delay=0,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    """Create a FastAPI test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def build_pipeline(text_query):
    """Build a TranscriptPipeline from fake providers and the mocked text query."""

    def _build(primary, alternative=None, cache=None):
        return TranscriptPipeline(
            transcript_manager=TranscriptManager(primary, alternative),
            refiner=TranscriptRefiner(text_query),
            article_generator=ArticleGenerator(text_query, timeout=1, retry_delay=0),
            cache=cache or ResultCache(ttl=60, check_period=3600),
        )

    return _build


@pytest.fixture
def mock_transcript_data():
    """Mock transcript data for testing."""
    return {
        "video_id": "dQw4w9WgXcQ",
        "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "segments": [
            {"text": "never gonna give you up", "start": 0.0, "duration": 2.5},
            {"text": "never gonna let you down", "start": 2.5, "duration": 2.4},
            {"text": "never gonna run around and desert you", "start": 4.9, "duration": 3.1},
        ],
    }


@pytest.fixture
def transcript_segments(mock_transcript_data):
    return [TranscriptSegment(**s) for s in mock_transcript_data["segments"]]
