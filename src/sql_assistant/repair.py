"""
Query Repair
============

Asks the language model to fix a query given the diagnostic it failed with.
"""

from typing import Optional

import structlog

from sql_assistant.errors import LLMUnavailableError, RepairInvocationError
from sql_assistant.llm.base import LLMInterface, system, user
from sql_assistant.normalizer import remove_fence_markup

logger = structlog.get_logger(__name__)


class QueryRepairer:
    """Wraps the language model to produce a corrected query."""

    SYSTEM_PROMPT = "You are a SQL expert. Fix the provided BigQuery SQL query based on the error message."

    SCHEMA_HINT = " Use the provided schema information to ensure the query is valid."

    REPAIR_PROMPT_TEMPLATE = """Fix this BigQuery SQL query:
```sql
{query}
```

Error: {diagnostic}
{schema_section}
Return ONLY the fixed SQL query without any explanations or markdown formatting."""

    def __init__(self, llm: LLMInterface) -> None:
        self.llm = llm

    def build_messages(self, query: str, diagnostic: str, schema: Optional[str] = None):
        system_prompt = self.SYSTEM_PROMPT + (self.SCHEMA_HINT if schema else "")
        schema_section = f"\nSchema information:\n{schema}\n" if schema else ""
        prompt = self.REPAIR_PROMPT_TEMPLATE.format(
            query=query,
            diagnostic=diagnostic or "Invalid query",
            schema_section=schema_section,
        )
        return [system(system_prompt), user(prompt)]

    async def repair(self, query: str, diagnostic: str, schema: Optional[str] = None) -> str:
        """
        Return a corrected query. One model call, never retried here.

        Raises:
            RepairInvocationError: if the model call fails
        """
        messages = self.build_messages(query, diagnostic, schema)
        try:
            response = await self.llm.generate(messages)
        except LLMUnavailableError as e:
            raise RepairInvocationError(str(e)) from e

        repaired = remove_fence_markup(response.content)
        logger.debug("query_repaired", diagnostic=diagnostic, repaired=repaired)
        return repaired
