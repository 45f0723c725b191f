"""LLM client for receipt extraction with JSON-only output."""

import logging
from abc import ABC, abstractmethod

from litellm import Timeout, acompletion

from fintrack.config import Settings, settings
from fintrack.errors import ConfigurationError, ExternalServiceError
from fintrack.receipts.prompts import with_receipt_text

logger = logging.getLogger(__name__)


class ExtractionClient(ABC):
    """A model that turns a receipt into raw JSON text."""

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the client cannot make calls."""

    @abstractmethod
    async def extract_from_text(self, prompt: str, text: str) -> str:
        """Send a prompt plus extracted document text; return the raw response."""

    @abstractmethod
    async def extract_from_image(self, prompt: str, image_b64: str, mime_type: str) -> str:
        """Send a prompt plus an inline base64 image; return the raw response."""


class LiteLLMExtractionClient(ExtractionClient):
    """
    Extraction client backed by litellm.

    One call per document: no retry on malformed output or transport errors,
    and every call is bounded by ``timeout``.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 30.0, temperature: float = 0.1):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "LiteLLMExtractionClient":
        config = config or settings
        return cls(
            api_key=config.gemini_api_key,
            model=config.llm_model,
            timeout=config.llm_timeout,
            temperature=config.llm_temperature,
        )

    def ensure_configured(self) -> None:
        if not self.api_key:
            logger.error("GEMINI_API_KEY is not set")
            raise ConfigurationError("Missing GEMINI_API_KEY")

    async def extract_from_text(self, prompt: str, text: str) -> str:
        return await self._complete(with_receipt_text(prompt, text))

    async def extract_from_image(self, prompt: str, image_b64: str, mime_type: str) -> str:
        content = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
        ]
        return await self._complete(content)

    async def _complete(self, content: str | list[dict]) -> str:
        """
        Make a single JSON-mode completion call.

        Raises:
            ExternalServiceError: If the call fails, times out or returns nothing
        """
        self.ensure_configured()
        logger.info(f"Calling {self.model} (timeout {self.timeout}s)")

        try:
            response = await acompletion(
                model=self.model,
                messages=[{"role": "user", "content": content}],
                api_key=self.api_key,
                response_format={"type": "json_object"},
                temperature=self.temperature,
                timeout=self.timeout,
                num_retries=0,
            )
        except (Timeout, TimeoutError) as e:
            logger.warning(f"LLM call timed out after {self.timeout}s")
            raise ExternalServiceError(f"Model call timed out after {self.timeout}s") from e
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise ExternalServiceError(str(e)) from e

        try:
            text = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise ExternalServiceError(f"Unexpected response shape from model: {e}") from e

        if not text.strip():
            raise ExternalServiceError("Model returned an empty response")

        logger.debug(f"Raw model response: {text[:200]}")
        return text
