"""
Base LLM Interface
==================

Abstract interface for LLM providers.
"""

from abc import ABC, abstractmethod

from sql_assistant.models import ChatMessage, LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def generate(self, messages: list[ChatMessage]) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: Ordered conversation (system, user and assistant turns)

        Returns:
            LLMResponse with generated content

        Raises:
            LLMUnavailableError: if the provider cannot be reached
        """
        pass


def system(content: str) -> ChatMessage:
    return ChatMessage(role="system", content=content)


def user(content: str) -> ChatMessage:
    return ChatMessage(role="user", content=content)


def assistant(content: str) -> ChatMessage:
    return ChatMessage(role="assistant", content=content)
