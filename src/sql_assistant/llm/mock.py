"""
Mock LLM
========

Mock LLM implementation for testing and demonstration.
"""

from typing import Optional

from sql_assistant.errors import LLMUnavailableError
from sql_assistant.llm.base import LLMInterface
from sql_assistant.models import ChatMessage, LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM for demonstration and testing purposes.

    In production, replace with a hosted chat model.
    """

    def __init__(
        self,
        responses: Optional[dict[str, list[str]]] = None,
        default: str = "SELECT * FROM unknown_table",
        fail_on: Optional[list[str]] = None,
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to list of responses.
                       Each response is returned in sequence, the last one
                       repeating (for testing correction).
            default: Returned when no key matches
            fail_on: Prompt substrings that make the call raise
                     LLMUnavailableError (for testing provider outages)
        """
        self.responses = responses or {}
        self.default = default
        self.fail_on = fail_on or []
        self.call_counts: dict[str, int] = {}
        self.prompts: list[list[ChatMessage]] = []

    async def generate(self, messages: list[ChatMessage]) -> LLMResponse:
        """
        Generate a mock response.

        Matches the last message against configured keys and returns
        successive responses to simulate correction behavior.
        """
        self.prompts.append(list(messages))
        prompt = messages[-1].content.lower() if messages else ""

        for key in self.fail_on:
            if key.lower() in prompt:
                raise LLMUnavailableError(f"mock provider unavailable for '{key}'")

        for key, replies in self.responses.items():
            if key.lower() in prompt:
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1
                return LLMResponse(
                    content=replies[min(count, len(replies) - 1)],
                    model="mock-llm-v1",
                )

        return LLMResponse(content=self.default, model="mock-llm-v1")

    def reset(self) -> None:
        """Reset call counts for fresh test runs."""
        self.call_counts = {}
        self.prompts = []
