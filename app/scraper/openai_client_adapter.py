import httpx
import openai

from app.scraper.client_base import BasePromptClient
from app.scraper.exceptions import PromptExtractionError


class OpenAIClientAdapter(BasePromptClient):
    """Prompt client built on the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise PromptExtractionError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise PromptExtractionError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise PromptExtractionError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise PromptExtractionError("AI returned empty response")
        return content.strip()
