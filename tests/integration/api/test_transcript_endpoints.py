"""
Integration tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from app.config import Settings
from app.errors import TranscriptNotFoundError, VideoUnavailableError
from app.main import create_app
from tests.factories import ProcessRequestFactory

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
ARTICLE = "# A Song About Commitment\n\n" + ("Never giving up is the whole point. " * 20)


class TestServiceEndpoints:
    """Integration tests for the informational endpoints."""

    def test_health_check(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root_lists_endpoints(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["endpoints"]["process"] == "/api/process"


class TestTranscriptEndpoint:
    """Integration tests for POST /api/transcript."""

    @pytest.mark.parametrize(
        "body, message",
        [
            ({}, "YouTube URL is required"),
            ({"url": ""}, "YouTube URL is required"),
            ({"url": "https://example.com/watch"}, "Invalid YouTube URL"),
        ],
    )
    def test_bad_url(self, client: TestClient, body, message):
        response = client.post("/api/transcript", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": message}

    def test_success_without_refinement(self, app, client, make_provider, build_pipeline, transcript_segments):
        app.state.pipeline = build_pipeline(make_provider(segments=transcript_segments))

        response = client.post("/api/transcript", json={"url": VIDEO_URL, "skipRefinement": True})

        assert response.status_code == 200
        data = response.json()
        assert data["videoId"] == "dQw4w9WgXcQ"
        assert data["raw"][0] == {"text": "never gonna give you up", "start": 0.0, "duration": 2.5}
        assert "refined" not in data

    def test_not_found(self, app, client, make_provider, build_pipeline):
        app.state.pipeline = build_pipeline(
            make_provider(error=TranscriptNotFoundError("No transcript found for this video"))
        )

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 404
        assert response.json() == {"error": "No transcript found for this video"}

    def test_malformed_body(self, client: TestClient):
        response = client.post("/api/transcript", json={"url": VIDEO_URL, "skipRefinement": "maybe"})
        assert response.status_code == 400
        assert "error" in response.json()


class TestBlogEndpoint:
    """Integration tests for POST /api/blog."""

    def test_missing_fields(self, client: TestClient):
        response = client.post("/api/blog", json={"videoId": "dQw4w9WgXcQ"})
        assert response.status_code == 400
        assert response.json() == {"error": "Both transcript data and videoId are required"}

    def test_transcript_too_short(self, client: TestClient):
        response = client.post(
            "/api/blog",
            json={"transcript": [{"text": "0123456789", "start": 0, "duration": 1}], "videoId": "dQw4w9WgXcQ"},
        )
        assert response.status_code == 400

    def test_success(self, app, client, make_provider, build_pipeline, text_query, mock_transcript_data):
        text_query.get_response = AsyncMock(return_value=ARTICLE)
        app.state.pipeline = build_pipeline(make_provider())

        response = client.post(
            "/api/blog",
            json={"transcript": mock_transcript_data["segments"], "videoId": "dQw4w9WgXcQ"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "A Song About Commitment"
        assert data["videoId"] == "dQw4w9WgXcQ"
        assert data["readingTime"] == "1 min read"
        assert "generatedAt" in data and "wordCount" in data

    def test_generation_failure(self, app, client, make_provider, build_pipeline, text_query, mock_transcript_data):
        text_query.get_response = AsyncMock(return_value="too short")
        app.state.pipeline = build_pipeline(make_provider())

        response = client.post(
            "/api/blog",
            json={"transcript": mock_transcript_data["segments"], "videoId": "dQw4w9WgXcQ"},
        )

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to generate blog after 2 attempts")


class TestProcessEndpoint:
    """Integration tests for POST /api/process."""

    def test_placeholder_when_no_transcript(self, app, client, make_provider, build_pipeline):
        """Test the fallback message flow returns 200 with a single placeholder segment."""
        app.state.pipeline = build_pipeline(
            make_provider(error=TranscriptNotFoundError("No transcript found")),
            make_provider(name="alt", is_alternative=True, error=VideoUnavailableError("gone")),
        )
        body = ProcessRequestFactory(url=VIDEO_URL, fallbackMessage=True)

        response = client.post("/api/process", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["transcriptUnavailable"] is True
        assert len(data["raw"]) == 1
        assert data["raw"][0]["isUnavailableMessage"] is True
        assert data["blog"] is None
        assert data["cached"] is False

    def test_not_found_without_fallback(self, app, client, make_provider, build_pipeline):
        app.state.pipeline = build_pipeline(
            make_provider(error=TranscriptNotFoundError("No transcript found"))
        )

        response = client.post("/api/process", json=ProcessRequestFactory(url=VIDEO_URL))

        assert response.status_code == 404

    def test_composition_failure_returns_partial(
        self, app, client, make_provider, build_pipeline, text_query, transcript_segments
    ):
        """Test that a 500 from composition still carries the transcript data."""
        text_query.get_response = AsyncMock(return_value="too short")
        app.state.pipeline = build_pipeline(make_provider(segments=transcript_segments))

        response = client.post(
            "/api/process", json=ProcessRequestFactory(url=VIDEO_URL, skipRefinement=True)
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"].startswith("Failed to generate blog")
        assert data["videoId"] == "dQw4w9WgXcQ"
        assert len(data["raw"]) == 3

    def test_second_request_is_cached(self, app, client, make_provider, build_pipeline, transcript_segments):
        primary = make_provider(segments=transcript_segments)
        app.state.pipeline = build_pipeline(primary)
        body = ProcessRequestFactory(url=VIDEO_URL, skipRefinement=True, generateBlog=False)

        first = client.post("/api/process", json=body).json()
        second = client.post("/api/process", json=body).json()

        assert first["cached"] is False
        assert second["cached"] is True
        assert second["raw"] == first["raw"]
        assert len(primary.fetch_calls) == 1

    def test_invalid_url(self, client: TestClient):
        response = client.post("/api/process", json=ProcessRequestFactory(url="not a url"))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid YouTube URL"}


class TestDebugEndpoint:
    """Integration tests for POST /api/debug."""

    def test_runs_debugger(self, app, client):
        app.state.debugger.run = AsyncMock(return_value={"videoId": "dQw4w9WgXcQ", "results": {}})

        response = client.post("/api/debug", json={"url": VIDEO_URL, "saveReport": True})

        assert response.status_code == 200
        assert response.json()["videoId"] == "dQw4w9WgXcQ"
        app.state.debugger.run.assert_awaited_once_with("dQw4w9WgXcQ", save_report=True)

    def test_missing_url(self, client: TestClient):
        response = client.post("/api/debug", json={})
        assert response.status_code == 400


class TestUnexpectedErrors:
    """Integration tests for the catch-all error handler."""

    @pytest.mark.parametrize(
        "environment, message",
        [("development", "boom"), ("production", "An unexpected error occurred")],
    )
    def test_unhandled_exception(self, environment, message):
        app = create_app(Settings(xai_api_key=None, environment=environment, cache_check_period=3600))
        app.state.pipeline.process = AsyncMock(side_effect=RuntimeError("boom"))

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post("/api/process", json={"url": VIDEO_URL})

        assert response.status_code == 500
        assert response.json() == {"error": message}
