from abc import ABC, abstractmethod


class BasePromptClient(ABC):
    """Contract for provider-specific chat clients used by prompt extraction."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return the provider's answer as plain text."""
