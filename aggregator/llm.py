"""Language-model client used by the enrichment stages."""
from openai import AsyncOpenAI, OpenAIError
from shared.config import settings


class LLMError(Exception):
    """A completion could not be obtained."""


class LLMClient:
    """Chat-completion wrapper: system instruction and user content in, text out."""

    def __init__(self, client: AsyncOpenAI = None, model: str = None):
        self._client = client
        self.model = model or settings.openai_model

    @property
    def client(self) -> AsyncOpenAI:
        # AsyncOpenAI raises at construction when no API key is configured
        if self._client is None:
            self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        return self._client

    async def complete(
        self,
        system: str,
        user: str,
        temperature: float,
        max_tokens: int
    ) -> str:
        """Run one completion and return its text. Raises LLMError on failure."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise LLMError(f"Completion request failed: {e}") from e

        if not response.choices:
            raise LLMError("Completion returned no choices")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise LLMError("Completion returned empty content")

        return content.strip()
