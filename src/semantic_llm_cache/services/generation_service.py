"""Generation pipeline backed by OpenAI chat completions.

Produces the authoritative response on a cache miss. The cache only ever
sees the fully assembled text.
"""

import logging
import time

import openai
from openai import AsyncOpenAI

from semantic_llm_cache.config import settings
from semantic_llm_cache.errors import GenerationFailure
from semantic_llm_cache.signature import build_signature

logger = logging.getLogger(__name__)


class OpenAIGenerationService:
    """Chat completion producer with a fixed generation configuration.

    Example:
        ```python
        generator = OpenAIGenerationService.create(temperature=0.2)
        result = await cache.lookup_or_generate(
            prompt,
            generator.signature(),
            lambda: generator.complete(prompt),
        )
        ```
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the generation service.

        Args:
            model: Completion model. Defaults to settings.openai_completion_model.
            temperature: Sampling temperature. Defaults to settings.
            max_tokens: Max completion tokens. Defaults to settings.
            system_prompt: System instructions. Defaults to settings.
            api_key: API key. Defaults to settings.openai_api_key.
            timeout: Request timeout in seconds.
            client: Pre-built AsyncOpenAI client.
        """
        self._model = model or settings.openai_completion_model
        self._temperature = settings.openai_temperature if temperature is None else temperature
        self._max_tokens = max_tokens or settings.openai_max_tokens
        self._system_prompt = settings.system_prompt if system_prompt is None else system_prompt
        self._api_key = api_key or settings.openai_api_key
        self._timeout = timeout
        self._client = client

    @classmethod
    def create(
        cls,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
    ) -> "OpenAIGenerationService":
        """Factory method to create OpenAIGenerationService with settings defaults."""
        return cls(model=model, temperature=temperature, max_tokens=max_tokens, system_prompt=system_prompt)

    def with_overrides(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
    ) -> "OpenAIGenerationService":
        """Copy this service with some parameters replaced, sharing the client."""
        return OpenAIGenerationService(
            model=model or self._model,
            temperature=self._temperature if temperature is None else temperature,
            max_tokens=max_tokens or self._max_tokens,
            system_prompt=self._system_prompt if system_prompt is None else system_prompt,
            api_key=self._api_key,
            timeout=self._timeout,
            client=self.client,
        )

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the AsyncOpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def signature(self) -> str:
        """Signature of this generation configuration."""
        return build_signature(self._model, self._temperature, self._max_tokens, self._system_prompt)

    async def complete(self, prompt: str) -> str:
        """Generate a response for a prompt.

        Args:
            prompt: The user prompt

        Returns:
            The completion text

        Raises:
            GenerationFailure: On any OpenAI API error or an empty completion
        """
        messages = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": prompt})

        start_time = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except openai.OpenAIError as e:
            raise GenerationFailure(f"OpenAI completion failed ({self._model}): {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationFailure(f"OpenAI returned an empty completion ({self._model})")

        logger.info(
            "Generated %d characters with %s in %.0fms",
            len(content),
            self._model,
            (time.time() - start_time) * 1000,
        )
        return content

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
