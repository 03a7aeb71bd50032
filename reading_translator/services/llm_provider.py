from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from reading_translator.logconf import logger
from reading_translator.models.errors import ProviderError, ProviderOverloaded
from reading_translator.settings import settings


@dataclass(frozen=True)
class ProviderRequest:
    prompt_text: str
    system_prompt: Optional[str] = None
    max_output_tokens: int = 4000
    temperature: float = 0.0


class LLMProvider(Protocol):
    """Anything that turns a request into raw model text. Can be mocked in tests."""

    async def complete(self, request: ProviderRequest) -> str: ...


class OpenAIProvider:
    """
    Chat-completions adapter. Overload status codes become
    ``ProviderOverloaded``; every other failure is a ``ProviderError``.
    The client's own retries are disabled so backoff stays in one place.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        overload_status_codes: Iterable[int] | None = None,
    ) -> None:
        self._client = client or (
            AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,
            )
            if settings.openai_api_key else None
        )
        self.model = model or settings.model
        self.overload_status_codes = frozenset(overload_status_codes or settings.overload_status_codes)

    async def complete(self, request: ProviderRequest) -> str:
        if not self._client:
            raise ProviderError("No LLM client configured (OPENAI_API_KEY is empty)")

        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt_text})

        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_output_tokens,
            )
        except APIStatusError as e:
            if e.status_code in self.overload_status_codes:
                raise ProviderOverloaded(f"Provider overloaded ({e.status_code})", status_code=e.status_code) from e
            logger.error("LLM request rejected (%s): %s", e.status_code, e)
            raise ProviderError(f"Provider rejected the request ({e.status_code})", status_code=e.status_code) from e
        except APIConnectionError as e:
            logger.error("LLM connection error: %s", e)
            raise ProviderError(f"Could not reach the provider: {e}") from e

        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()
