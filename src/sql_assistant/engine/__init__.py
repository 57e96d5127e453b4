"""
Data Engine Module
==================

Pluggable analytic stores for dry-runs, execution and schema lookup.
"""

from sql_assistant.engine.base import (
    DataEngine,
    format_execution_result,
    format_rows,
    format_table_list,
)
from sql_assistant.engine.memory import SAMPLE_TABLES, InMemoryDataEngine

__all__ = [
    "DataEngine",
    "InMemoryDataEngine",
    "SAMPLE_TABLES",
    "format_execution_result",
    "format_rows",
    "format_table_list",
]
