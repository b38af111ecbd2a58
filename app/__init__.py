# Main app package
from .data.transcript_manager import TranscriptManager
from .data.result_cache import ResultCache
from .content_department.creation_tools.transcript_refiner import TranscriptRefiner
from .content_department.creation_tools.article_generator import ArticleGenerator
from .content_department.pipeline import TranscriptPipeline

__all__ = [
    # Core classes
    "TranscriptManager",
    "ResultCache",
    "TranscriptRefiner",
    "ArticleGenerator",
    "TranscriptPipeline",
]
