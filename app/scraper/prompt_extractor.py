from app.logging.logger import Log
from app.scraper.client_base import BasePromptClient

SYSTEM_PROMPT = (
    "You extract information from the text of a web page. "
    "Answer only from the page text. If the page does not contain the answer, "
    "reply with 'Not found'."
)

USER_PROMPT_TEMPLATE = """Page URL: {url}

Page text:
{page_text}

Request: {prompt}"""


class PromptExtractor:
    """Answers each user prompt against the page text, one chat call per prompt."""

    def __init__(
        self,
        *,
        client: BasePromptClient,
        model: str,
        temperature: float = 0.0,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))

    def extract(self, url: str, page_text: str, prompts: list[str]) -> dict[str, str]:
        """Returns ``{"prompt_1": answer, ...}`` numbered by prompt position."""
        answers: dict[str, str] = {}
        for index, prompt in enumerate(prompts, start=1):
            Log.debug(f"Prompt {index} for {url}: {prompt!r}")
            answers[f"prompt_{index}"] = self._client.create_chat_completion(
                model=self._model,
                temperature=self._temperature,
                system_prompt=SYSTEM_PROMPT,
                user_prompt=USER_PROMPT_TEMPLATE.format(
                    url=url, page_text=page_text, prompt=prompt
                ),
            )
        Log.info(f"Answered {len(answers)} prompts for {url}")
        return answers
