# Standard library imports
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Load environment variables
from dotenv import load_dotenv

# Third-party imports
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Local imports
from app.config import Settings
from app.content_department.creation_tools.article_generator import ArticleGenerator
from app.content_department.creation_tools.transcript_refiner import TranscriptRefiner
from app.content_department.creation_tools.xai_text_query import XAITextQuery
from app.content_department.pipeline import TranscriptPipeline, require_video_id
from app.data.data_classes import (
    BlogRequest,
    DebugRequest,
    ProcessRequest,
    TranscriptProviderName,
    TranscriptRequest,
)
from app.data.result_cache import ResultCache
from app.data.transcript_debugger import TranscriptDebugger
from app.data.transcript_manager import TranscriptManager
from app.data.transcript_providers import (
    BaseTranscriptProvider,
    YouTubeTranscriptProvider,
    YtDlpTranscriptProvider,
)
from app.errors import CompositionError, TranscriptServiceError
from app.utils import configure_logging, log_error

logger = logging.getLogger(__name__)


# ===== APPLICATION FACTORY =====


def build_providers(settings: Settings, text_query: XAITextQuery):
    """
    Build the (primary, alternative) provider pair from configuration.

    The alternative is whichever provider is not primary, and is omitted when
    ENABLE_ALTERNATIVE_PROVIDER is false.
    """
    registry: Dict[str, BaseTranscriptProvider] = {
        TranscriptProviderName.YOUTUBE_TRANSCRIPT_API.value: YouTubeTranscriptProvider(
            region=settings.transcript_region, text_query=text_query
        ),
        TranscriptProviderName.YT_DLP.value: YtDlpTranscriptProvider(text_query=text_query),
    }
    if settings.primary_transcript_provider not in registry:
        raise ValueError(
            f"Unknown PRIMARY_TRANSCRIPT_PROVIDER: {settings.primary_transcript_provider}"
        )

    primary = registry.pop(settings.primary_transcript_provider)
    alternative = next(iter(registry.values())) if settings.enable_alternative_provider else None
    return primary, alternative


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Construct the FastAPI application and its shared components.

    The cache, the xAI client wrapper, the providers and the pipeline are built
    once here and stored on ``app.state``.
    """
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()

    configure_logging(settings.log_level, settings.log_file)

    text_query = XAITextQuery(api_key=settings.xai_api_key, model=settings.xai_model)
    cache = ResultCache(
        ttl=settings.cache_ttl,
        check_period=settings.cache_check_period,
        maxsize=settings.cache_max_size,
    )
    primary, alternative = build_providers(settings, text_query)
    pipeline = TranscriptPipeline(
        transcript_manager=TranscriptManager(primary, alternative),
        refiner=TranscriptRefiner(text_query),
        article_generator=ArticleGenerator(
            text_query,
            timeout=settings.composition_timeout,
            retry_delay=settings.composition_retry_delay,
        ),
        cache=cache,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cache.start_sweeper()
        logger.info("Result cache sweeper started")
        try:
            yield
        finally:
            await cache.stop_sweeper()
            logger.info("Result cache sweeper stopped")

    app = FastAPI(
        title="YouTube Transcript to Blog API",
        description="API for fetching YouTube transcripts, refining them and generating blog posts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.pipeline = pipeline
    app.state.debugger = TranscriptDebugger(environment=settings.environment)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    register_exception_handlers(app)
    register_routes(app)

    logger.info("FastAPI app initialized!")
    return app


# ===== ERROR HANDLING =====


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Invalid request body: {details}"},
        )

    @app.exception_handler(CompositionError)
    async def composition_error_handler(request: Request, exc: CompositionError):
        log_error(logger, request.url.path, exc)
        content: Dict[str, Any] = {"error": exc.message}
        if exc.partial:
            content.update(exc.partial)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(TranscriptServiceError)
    async def service_error_handler(request: Request, exc: TranscriptServiceError):
        log_error(logger, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"500 - {str(exc)}", exc_info=True)
        message = (
            "An unexpected error occurred"
            if request.app.state.settings.is_production
            else str(exc)
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": message},
        )


# ===== ROUTES =====


def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def root() -> Dict[str, Any]:
        """
        Describe the API and list its endpoints.
        """
        return {
            "message": "YouTube Transcript to Blog API",
            "endpoints": {
                "health": "/api/health",
                "transcript": "/api/transcript",
                "blog": "/api/blog",
                "process": "/api/process",
                "debug": "/api/debug",
            },
            "docs": "Make POST requests to the endpoints with appropriate JSON data",
        }

    @app.get("/api/health")
    def health_check() -> Dict[str, str]:
        """
        Health check endpoint to verify the server is running.

        Returns:
            dict: {"status": "ok"}
        """
        return {"status": "ok"}

    @app.post("/api/transcript")
    async def transcript_endpoint(body: TranscriptRequest, request: Request) -> Dict[str, Any]:
        """
        Fetch a transcript for a YouTube URL, refined unless `skipRefinement` is set.

        ## Request Body
        ```json
        {"url": "https://youtu.be/dQw4w9WgXcQ", "language": "en", "skipRefinement": false}
        ```

        ## Responses
        - **200**: `{"videoId", "raw", "refined"}` (`refined` omitted when skipped)
        - **400**: Missing or invalid URL
        - **404**: No transcript could be obtained from any provider
        """
        return await request.app.state.pipeline.get_transcript(body)

    @app.post("/api/blog")
    async def blog_endpoint(body: BlogRequest, request: Request) -> Dict[str, Any]:
        """
        Generate a blog post from transcript segments.

        ## Request Body
        ```json
        {"transcript": [{"text": "...", "start": 0, "duration": 2.5}], "videoId": "dQw4w9WgXcQ"}
        ```

        ## Responses
        - **200**: Article `{title, content, videoId, generatedAt, wordCount, readingTime}`
        - **400**: Missing transcript/videoId, or transcript too short
        - **500**: Generation failed after retries
        """
        article = await request.app.state.pipeline.generate_blog(
            body.transcript, body.video_id, body.video_title
        )
        return article.to_json_dict()

    @app.post("/api/process")
    async def process_endpoint(body: ProcessRequest, request: Request) -> Dict[str, Any]:
        """
        Fetch, refine and turn a YouTube video into a blog post in one request.

        ## Request Body
        - **url** (required): YouTube video URL
        - **language**: Caption language code (default `en`)
        - **skipRefinement**: Skip transcript refinement (default `false`)
        - **generateBlog**: Generate a blog post (default `true`)
        - **fallbackMessage**: Return a placeholder message instead of 404 when no transcript exists
        - **preferAlternativeService**: Try the alternative transcript provider first

        ## Success Response (200 OK)
        ```json
        {
            "videoId": "dQw4w9WgXcQ",
            "raw": [...],
            "refined": [...],
            "blog": {...},
            "transcriptUnavailable": false,
            "usedAlternativeService": false,
            "cached": false
        }
        ```

        ## Errors
        - **400**: Missing or invalid URL
        - **404**: No transcript and `fallbackMessage` is false
        - **500**: Blog generation failed; the body still carries the transcript data
        """
        return await request.app.state.pipeline.process(body)

    @app.post("/api/debug")
    async def debug_endpoint(body: DebugRequest, request: Request) -> Dict[str, Any]:
        """
        Run transcript diagnostics for a video and return the collected report.
        """
        video_id = require_video_id(body.url)
        return await request.app.state.debugger.run(video_id, save_report=body.save_report)


app = create_app()
