import json
import logging
import re
from typing import Any, Dict, List, Union

from ...data.data_classes import RefinedSegment, TranscriptSegment, is_placeholder
from ...utils import log_operation, log_success, log_warning
from .xai_text_query import XAITextQuery

logger = logging.getLogger(__name__)

BATCH_SIZE = 15
JSON_ARRAY_PATTERN = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)
# Set by refinement itself; dropped when re-refining an already refined segment
REFINEMENT_FIELDS = {"original", "refinement_failed"}


class TranscriptRefiner:
    """
    Corrects spelling, grammar and punctuation of transcript segments with Grok.

    Segments are sent in batches of 15, one batch at a time, to stay under
    token limits and to keep the load on the generative service low. A batch
    that fails keeps its original text and is flagged ``refinement_failed``;
    the remaining batches still run. The output always has one segment per
    input segment, in the same order.
    """

    def __init__(self, text_query: XAITextQuery, batch_size: int = BATCH_SIZE):
        self.text_query = text_query
        self.batch_size = batch_size

    async def refine(
        self, transcript: List[TranscriptSegment]
    ) -> Union[List[RefinedSegment], List[TranscriptSegment]]:
        if not transcript:
            log_warning(logger, "refine_transcript", "No transcript data provided for refinement")
            return []

        if is_placeholder(transcript):
            logger.info("Skipping refinement for unavailable transcript message")
            return transcript

        total_batches = (len(transcript) + self.batch_size - 1) // self.batch_size
        log_operation(
            logger,
            "refine_transcript",
            {"segments": len(transcript), "batches": total_batches},
        )

        refined: List[RefinedSegment] = []
        for batch_number, offset in enumerate(range(0, len(transcript), self.batch_size), start=1):
            logger.debug(f"Processing batch {batch_number} of {total_batches}")
            batch = transcript[offset : offset + self.batch_size]
            refined.extend(await self._refine_batch(batch, batch_number))

        failed = sum(1 for segment in refined if segment.refinement_failed)
        log_success(
            logger,
            "refine_transcript",
            {"segments": len(refined), "failed_segments": failed},
        )
        return refined

    async def _refine_batch(
        self, batch: List[TranscriptSegment], batch_number: int
    ) -> List[RefinedSegment]:
        try:
            response = await self.text_query.get_response(self.build_prompt(batch))
            refined_by_index = self.parse_response(response)
        except Exception as e:
            log_warning(
                logger,
                "refine_batch",
                f"Keeping original text: {e}",
                {"batch": batch_number, "segments": len(batch)},
            )
            return [self._unrefined(segment) for segment in batch]

        merged = []
        for index, segment in enumerate(batch, start=1):
            refined_text = refined_by_index.get(index)
            if refined_text:
                merged.append(
                    RefinedSegment(
                        **segment.model_dump(exclude=REFINEMENT_FIELDS | {"text"}),
                        text=refined_text,
                        original=segment.text,
                    )
                )
            else:
                merged.append(self._unrefined(segment))
        return merged

    @staticmethod
    def build_prompt(batch: List[TranscriptSegment]) -> str:
        segment_lines = "\n".join(
            f'Segment {index}: "{segment.text}"'
            for index, segment in enumerate(batch, start=1)
        )
        return f"""
I have a YouTube video transcript that needs refinement. Please correct spelling errors,
fix grammar issues, add proper punctuation, and ensure natural sentence flow.
Here are the transcript segments:

{segment_lines}

Please return the refined transcript in JSON format with this exact structure,
using the same segment numbers as above:
[
  {{"index": 1, "refined": "corrected text for segment 1"}},
  {{"index": 2, "refined": "corrected text for segment 2"}},
  ...
]
Only include the JSON array in your response, nothing else.
"""

    @staticmethod
    def parse_response(response: str) -> Dict[int, str]:
        """
        Extract ``{index: refined_text}`` from a model reply.

        Raises:
            ValueError: If the reply holds no parseable JSON array of objects
        """
        match = JSON_ARRAY_PATTERN.search(response or "")
        if not match:
            raise ValueError("Failed to extract JSON from model response")

        items: Any = json.loads(match.group(0))
        if not isinstance(items, list):
            raise ValueError("Model response JSON is not an array")

        refined_by_index: Dict[int, str] = {}
        for item in items:
            if not isinstance(item, dict):
                continue
            refined = item.get("refined")
            try:
                index = int(item.get("index"))
            except (TypeError, ValueError):
                continue
            if isinstance(refined, str) and refined.strip():
                refined_by_index[index] = refined.strip()
        return refined_by_index

    @staticmethod
    def _unrefined(segment: TranscriptSegment) -> RefinedSegment:
        return RefinedSegment(
            **segment.model_dump(exclude=REFINEMENT_FIELDS),
            original=segment.text,
            refinement_failed=True,
        )
