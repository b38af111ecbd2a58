import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import ProviderError, TranscriptError
from ..utils import log_error, log_operation, log_success, log_warning
from .data_classes import AcquisitionState, TranscriptSegment
from .transcript_providers import BaseTranscriptProvider, placeholder_transcript, unavailable_message

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionResult:
    """Outcome of one acquisition run. ``error`` is set only when no transcript was produced."""

    video_id: str
    transcript: List[TranscriptSegment] = field(default_factory=list)
    used_alternative: bool = False
    is_placeholder: bool = False
    provider: Optional[BaseTranscriptProvider] = None
    error: Optional[TranscriptError] = None
    states: List[AcquisitionState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.error is None


class TranscriptManager:
    """
    Obtains a transcript by trying the configured providers in order.

    Public Methods:
    ---------------
    acquire(video_id, language, prefer_alternative, allow_placeholder) -> AcquisitionResult
        Runs the acquisition state machine:

            IDLE -> TRY_PRIMARY -> TRY_SECONDARY -> SYNTHESIZE -> DONE

        The primary provider is tried first, then the alternative (when one is
        registered). If both fail and placeholders are allowed, a
        single-segment "transcript unavailable" message is synthesized and the
        run still ends in DONE without an error. If placeholders are not
        allowed the result carries the failure instead of raising.

    get_transcript(...) -> AcquisitionResult
        Same as acquire, but raises the failure for callers that want exceptions.

    Usage Example:
    --------------
    >>> manager = TranscriptManager(YouTubeTranscriptProvider(), YtDlpTranscriptProvider())
    >>> result = await manager.acquire("dQw4w9WgXcQ", allow_placeholder=True)
    >>> print(len(result.transcript), result.used_alternative)
    """

    def __init__(
        self,
        primary: BaseTranscriptProvider,
        alternative: Optional[BaseTranscriptProvider] = None,
    ):
        self.primary = primary
        self.alternative = alternative

    # =============================================================================
    # PUBLIC API METHODS
    # =============================================================================

    def ordered_providers(self, prefer_alternative: bool = False) -> List[BaseTranscriptProvider]:
        """Providers in the order they will be tried for this request."""
        if self.alternative is None:
            return [self.primary]
        if prefer_alternative:
            return [self.alternative, self.primary]
        return [self.primary, self.alternative]

    async def acquire(
        self,
        video_id: str,
        language: str = "en",
        prefer_alternative: bool = False,
        allow_placeholder: bool = False,
    ) -> AcquisitionResult:
        providers = self.ordered_providers(prefer_alternative)
        result = AcquisitionResult(video_id=video_id, states=[AcquisitionState.IDLE])
        errors: List[TranscriptError] = []

        log_operation(
            logger,
            "acquire_transcript",
            {
                "video_id": video_id,
                "language": language,
                "order": [p.name for p in providers],
                "allow_placeholder": allow_placeholder,
            },
        )

        state = AcquisitionState.TRY_PRIMARY
        while state != AcquisitionState.DONE:
            result.states.append(state)

            if state in (AcquisitionState.TRY_PRIMARY, AcquisitionState.TRY_SECONDARY):
                provider = providers[0 if state == AcquisitionState.TRY_PRIMARY else 1]
                try:
                    result.transcript = await self._fetch(provider, video_id, language)
                    result.provider = provider
                    result.used_alternative = provider.is_alternative
                    state = AcquisitionState.DONE
                    continue
                except TranscriptError as e:
                    errors.append(e)
                    log_warning(
                        logger,
                        "acquire_transcript",
                        f"{provider.name} failed: {e.message}",
                        {"video_id": video_id, "state": state.value},
                    )

                if state == AcquisitionState.TRY_PRIMARY and len(providers) > 1:
                    state = AcquisitionState.TRY_SECONDARY
                elif allow_placeholder:
                    state = AcquisitionState.SYNTHESIZE
                else:
                    result.error = self._aggregate_errors(errors)
                    state = AcquisitionState.DONE

            elif state == AcquisitionState.SYNTHESIZE:
                result.transcript = await self._synthesize(providers[0], video_id)
                result.provider = providers[0]
                result.is_placeholder = True
                state = AcquisitionState.DONE

        result.states.append(AcquisitionState.DONE)

        if result.error is None:
            log_success(
                logger,
                "acquire_transcript",
                {
                    "video_id": video_id,
                    "provider": result.provider.name if result.provider else None,
                    "segments": len(result.transcript),
                    "placeholder": result.is_placeholder,
                },
            )
        else:
            log_error(logger, "acquire_transcript", result.error, {"video_id": video_id})

        return result

    async def get_transcript(
        self,
        video_id: str,
        language: str = "en",
        prefer_alternative: bool = False,
        allow_placeholder: bool = False,
    ) -> AcquisitionResult:
        result = await self.acquire(video_id, language, prefer_alternative, allow_placeholder)
        if result.error is not None:
            raise result.error
        return result

    async def check_availability(self, video_id: str) -> Dict[str, Any]:
        """Ask each provider for video metadata until one reports the video exists."""
        for provider in self.ordered_providers():
            availability = await provider.check_availability(video_id)
            if availability.get("exists"):
                return availability
        return {"exists": False, "title": None}

    # =============================================================================
    # STATE HANDLERS
    # =============================================================================

    @staticmethod
    async def _fetch(
        provider: BaseTranscriptProvider, video_id: str, language: str
    ) -> List[TranscriptSegment]:
        try:
            return await provider.fetch_transcript(video_id, language)
        except TranscriptError:
            raise
        except Exception as e:
            raise ProviderError(f"Failed to fetch transcript: {e}") from e

    @staticmethod
    async def _synthesize(
        provider: BaseTranscriptProvider, video_id: str
    ) -> List[TranscriptSegment]:
        try:
            return await provider.generate_placeholder(video_id)
        except Exception as e:
            log_error(logger, "generate_placeholder", e, {"video_id": video_id})
            return placeholder_transcript(unavailable_message(video_id))

    @staticmethod
    def _aggregate_errors(errors: List[TranscriptError]) -> TranscriptError:
        """Combine provider failures, keeping the first provider's error type and message first."""
        first = errors[0]
        if len(errors) == 1:
            return first
        message = "; ".join(
            [first.message] + [f"alternative provider also failed: {e.message}" for e in errors[1:]]
        )
        aggregated = type(first)(message)
        aggregated.__cause__ = first
        return aggregated
