"""
OpenAI Chat LLM
===============

Hosted chat model through LangChain's OpenAI integration.
"""

from typing import Any, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from sql_assistant.errors import LLMUnavailableError
from sql_assistant.llm.base import LLMInterface
from sql_assistant.models import ChatMessage, LLMResponse

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain(messages: list[ChatMessage]) -> list[BaseMessage]:
    return [_MESSAGE_TYPES[m.role](content=m.content) for m in messages]


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Multi-part content blocks
    return "".join(
        part.get("text", "") if isinstance(part, dict) else str(part) for part in content
    )


class OpenAIChatLLM(LLMInterface):
    """LLM provider backed by ``langchain_openai.ChatOpenAI``."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        chat_model: Optional[ChatOpenAI] = None,
    ) -> None:
        self.model = model
        self.chat_model = chat_model or ChatOpenAI(
            model=model, api_key=api_key, temperature=temperature
        )

    async def generate(self, messages: list[ChatMessage]) -> LLMResponse:
        try:
            reply = await self.chat_model.ainvoke(to_langchain(messages))
        except Exception as e:
            raise LLMUnavailableError(f"{self.model} call failed: {e}") from e

        usage = getattr(reply, "usage_metadata", None) or {}
        return LLMResponse(
            content=_content_text(reply.content),
            model=self.model,
            tokens_used=usage.get("total_tokens", 0),
        )
