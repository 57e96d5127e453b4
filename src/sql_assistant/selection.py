"""
Table Selection
===============

One model call choosing the table to describe for a question.

The answer is only trimmed. A malformed name is not caught here: it flows
into the schema lookup and shows up as a validator failure downstream.
"""

from typing import Optional

from sql_assistant.llm.base import LLMInterface, user
from sql_assistant.models import ChatMessage


class TableSelector:
    PROMPT_TEMPLATE = (
        'Based on this question: "{question}" and these available tables: {tables}, '
        "which table should I get the schema for? Just respond with the table name "
        "in format 'dataset.table'."
    )

    def __init__(self, llm: LLMInterface) -> None:
        self.llm = llm

    async def select(
        self,
        question: str,
        tables: str,
        history: Optional[list[ChatMessage]] = None,
    ) -> str:
        prompt = self.PROMPT_TEMPLATE.format(question=question, tables=tables)
        response = await self.llm.generate([*(history or []), user(prompt)])
        return response.content.strip()
