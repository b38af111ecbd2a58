"""
Unit tests for TranscriptPipeline.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock

from app.content_department.pipeline import require_video_id
from app.data.data_classes import ProcessRequest, TranscriptRequest, TranscriptSegment
from app.errors import (
    CompositionError,
    InputTooShortError,
    ProviderError,
    TranscriptNotFoundError,
    ValidationError,
)

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
ARTICLE = "# Never Gonna Give You Up\n\n" + ("A song about commitment and loyalty. " * 20)


def refined_text(index):
    return f"Refined segment number {index} with punctuation."


def refine_everything(prompt):
    count = prompt.count("Segment ")
    return json.dumps(
        [{"index": i, "refined": refined_text(i)} for i in range(1, count + 1)]
    )


def route_replies(prompt):
    """Answer refinement prompts with JSON and article prompts with markdown."""
    if "refinement" in prompt:
        return refine_everything(prompt)
    return ARTICLE


class TestRequireVideoId:
    def test_missing_url(self):
        with pytest.raises(ValidationError, match="YouTube URL is required"):
            require_video_id(None)

    def test_invalid_url(self):
        with pytest.raises(ValidationError, match="Invalid YouTube URL"):
            require_video_id("https://example.com/video")

    def test_valid_url(self):
        assert require_video_id(VIDEO_URL) == "dQw4w9WgXcQ"


class TestTranscriptPipeline:
    """Test cases for TranscriptPipeline."""

    @pytest.fixture
    def replies(self, text_query):
        text_query.get_response = AsyncMock(side_effect=route_replies)
        return text_query

    def test_get_transcript_refined(self, make_provider, build_pipeline, replies, transcript_segments):
        pipeline = build_pipeline(make_provider(segments=transcript_segments))

        result = asyncio.run(pipeline.get_transcript(TranscriptRequest(url=VIDEO_URL)))

        assert result["videoId"] == "dQw4w9WgXcQ"
        assert [s["text"] for s in result["raw"]] == [s.text for s in transcript_segments]
        assert [s["text"] for s in result["refined"]] == [refined_text(i) for i in (1, 2, 3)]
        assert result["refined"][0]["original"] == transcript_segments[0].text

    def test_get_transcript_skip_refinement(self, make_provider, build_pipeline, replies, transcript_segments):
        pipeline = build_pipeline(make_provider(segments=transcript_segments))

        result = asyncio.run(
            pipeline.get_transcript(TranscriptRequest(url=VIDEO_URL, skip_refinement=True))
        )

        assert "refined" not in result
        replies.get_response.assert_not_called()

    def test_get_transcript_not_found(self, make_provider, build_pipeline):
        pipeline = build_pipeline(
            make_provider(error=TranscriptNotFoundError("No transcript found")),
            make_provider(name="alt", is_alternative=True, error=ProviderError("rate limited")),
        )

        with pytest.raises(TranscriptNotFoundError):
            asyncio.run(pipeline.get_transcript(TranscriptRequest(url=VIDEO_URL)))

    def test_process_full_flow(self, make_provider, build_pipeline, replies, transcript_segments):
        """Test the combined flow produces raw, refined and an article."""
        primary = make_provider(segments=transcript_segments, title="Never Gonna Give You Up")
        pipeline = build_pipeline(primary)

        result = asyncio.run(pipeline.process(ProcessRequest(url=VIDEO_URL)))

        assert result["videoId"] == "dQw4w9WgXcQ"
        assert len(result["raw"]) == len(result["refined"]) == 3
        assert result["transcriptUnavailable"] is False
        assert result["usedAlternativeService"] is False
        assert result["cached"] is False
        assert result["blog"]["title"] == "Never Gonna Give You Up"
        assert result["blog"]["videoTitle"] == "Never Gonna Give You Up"
        assert result["blog"]["readingTime"].endswith("min read")

    def test_process_second_call_is_cached(self, make_provider, build_pipeline, replies, transcript_segments):
        """Test that an identical request is served from cache without provider calls."""
        primary = make_provider(segments=transcript_segments)
        pipeline = build_pipeline(primary)
        request = ProcessRequest(url=VIDEO_URL, generate_blog=False)

        first = asyncio.run(pipeline.process(request))
        second = asyncio.run(pipeline.process(request))

        assert first["cached"] is False
        assert second["cached"] is True
        assert {k: v for k, v in second.items() if k != "cached"} == {
            k: v for k, v in first.items() if k != "cached"
        }
        assert len(primary.fetch_calls) == 1

    def test_process_different_options_are_not_shared(self, make_provider, build_pipeline, replies, transcript_segments):
        primary = make_provider(segments=transcript_segments)
        pipeline = build_pipeline(primary)

        asyncio.run(pipeline.process(ProcessRequest(url=VIDEO_URL, generate_blog=False)))
        result = asyncio.run(
            pipeline.process(ProcessRequest(url=VIDEO_URL, generate_blog=False, skip_refinement=True))
        )

        assert result["cached"] is False
        assert result["refined"] is None
        assert len(primary.fetch_calls) == 2

    def test_process_uses_alternative(self, make_provider, build_pipeline, replies):
        """Test that the alternative provider's transcript is used when the primary has none."""
        alternative_segments = [
            {"text": "first", "start": 0, "duration": 1},
            {"text": "second", "start": 1, "duration": 1},
            {"text": "third", "start": 2, "duration": 1},
        ]

        pipeline = build_pipeline(
            make_provider(error=TranscriptNotFoundError("No transcript found")),
            make_provider(
                name="alt",
                is_alternative=True,
                segments=[TranscriptSegment(**s) for s in alternative_segments],
            ),
        )

        result = asyncio.run(
            pipeline.process(ProcessRequest(url=VIDEO_URL, generate_blog=False, skip_refinement=True))
        )

        assert result["usedAlternativeService"] is True
        assert [s["text"] for s in result["raw"]] == ["first", "second", "third"]

    def test_process_placeholder(self, make_provider, build_pipeline, replies):
        """Test that a placeholder is returned, not refined, not composed and not cached."""
        primary = make_provider(error=TranscriptNotFoundError("No transcript found"), title="Song")
        alternative = make_provider(
            name="alt", is_alternative=True, error=TranscriptNotFoundError("No captions")
        )
        pipeline = build_pipeline(primary, alternative)
        request = ProcessRequest(url=VIDEO_URL, fallback_message=True)

        result = asyncio.run(pipeline.process(request))

        assert result["transcriptUnavailable"] is True
        assert len(result["raw"]) == 1
        assert result["raw"][0]["isUnavailableMessage"] is True
        assert '"Song"' in result["raw"][0]["text"]
        assert result["refined"] == result["raw"]
        assert result["blog"] is None
        replies.get_response.assert_not_called()

        asyncio.run(pipeline.process(request))
        assert len(primary.fetch_calls) == 2

    def test_process_without_placeholder_raises(self, make_provider, build_pipeline):
        pipeline = build_pipeline(make_provider(error=TranscriptNotFoundError("No transcript found")))

        with pytest.raises(TranscriptNotFoundError):
            asyncio.run(pipeline.process(ProcessRequest(url=VIDEO_URL)))

    def test_process_composition_failure_carries_partial(
        self, make_provider, build_pipeline, text_query, transcript_segments
    ):
        """Test that a failed article still hands back the transcript data."""

        def fail_articles(prompt):
            if "refinement" in prompt:
                return refine_everything(prompt)
            return "nope"

        text_query.get_response = AsyncMock(side_effect=fail_articles)
        pipeline = build_pipeline(make_provider(segments=transcript_segments))

        with pytest.raises(CompositionError) as exc_info:
            asyncio.run(pipeline.process(ProcessRequest(url=VIDEO_URL)))

        partial = exc_info.value.partial
        assert partial["videoId"] == "dQw4w9WgXcQ"
        assert len(partial["raw"]) == 3
        assert len(partial["refined"]) == 3
        assert "blog" not in partial
        assert len(pipeline.cache) == 0

    def test_generate_blog_requires_input(self, make_provider, build_pipeline):
        pipeline = build_pipeline(make_provider())

        with pytest.raises(ValidationError):
            asyncio.run(pipeline.generate_blog([], "dQw4w9WgXcQ"))
        with pytest.raises(ValidationError):
            asyncio.run(pipeline.generate_blog(None, None))

    def test_generate_blog_too_short(self, make_provider, build_pipeline):

        pipeline = build_pipeline(make_provider())

        with pytest.raises(InputTooShortError):
            asyncio.run(
                pipeline.generate_blog([TranscriptSegment(text="0123456789")], "dQw4w9WgXcQ")
            )
