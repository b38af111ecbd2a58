# Standard library imports
import logging
from typing import Optional

# Third-party imports
from xai_sdk import AsyncClient
from xai_sdk.chat import user, system

# Local imports
from ...errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "grok-3-mini"


class XAITextQuery:
    """
    A client wrapper for xAI (Grok) text generation.

    This class owns a single xAI async client, created on first use and reused
    for every later request. Refinement, article composition and placeholder
    messages all go through ``get_response``.

    Attributes:
        api_key (str): The API key for xAI authentication
        model (str): The Grok model used for chat completions
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 120,
    ):
        """
        Initialize the XAITextQuery.

        If no API key is given, every call to ``get_response`` raises
        GenerationError so callers can fall back to their degraded behaviour.
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: Optional[AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = AsyncClient(api_key=self.api_key, timeout=self.timeout)
            logger.info(f"xAI client initialized for model {self.model}")
        return self._client

    async def get_response(self, message: str, context: Optional[str] = None) -> str:
        """
        Generate a response for a prompt.

        Args:
            message (str): The user prompt
            context (str, optional): System instructions sent ahead of the prompt

        Returns:
            str: The generated text

        Raises:
            GenerationError: If the API key is missing or the xAI call fails
        """
        if not self.is_configured:
            raise GenerationError("XAI_API_KEY environment variable is not set")

        try:
            chat = self._get_client().chat.create(model=self.model)
            if context:
                chat.append(system(context))
            chat.append(user(message))

            response = await chat.sample()
            # response.content is already a string
            content = response.content or ""
        except Exception as e:
            raise GenerationError(f"Failed to get response from xAI: {str(e)}") from e

        logger.debug(f"xAI response received ({len(content)} chars)")
        return content
