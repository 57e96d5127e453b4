"""
LLM Module
==========

Pluggable LLM interfaces for generation, repair and narration.
"""

from sql_assistant.llm.base import LLMInterface
from sql_assistant.llm.mock import MockLLM

__all__ = [
    "LLMInterface",
    "MockLLM",
]
