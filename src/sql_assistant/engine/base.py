"""
Data Engine Interface
=====================

Abstract interface for the analytic store that lists tables, describes
them, dry-runs queries and executes them.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from sql_assistant.models import DryRunResult, ExecutionResult

NO_TABLES_MESSAGE = "No tables found in the database."
NO_ROWS_MESSAGE = "Query executed successfully but returned no results."


class DataEngine(ABC):
    """Abstract interface for data engines."""

    @abstractmethod
    async def list_tables(self) -> list[str]:
        """
        List every table as ``dataset.table``.

        Raises:
            DataEngineError: if the engine cannot be reached
        """
        pass

    @abstractmethod
    async def get_schema(self, table_name: str) -> str:
        """
        Describe a table in the schema description shape.

        Returns an ``Error ...`` string (not an exception) when the table is
        absent or the name is malformed.
        """
        pass

    @abstractmethod
    async def list_fields(self) -> list[str]:
        """Every field of every table as ``dataset.table.field``."""
        pass

    @abstractmethod
    async def dry_run(self, query: str) -> DryRunResult:
        """Validate the query without scanning data or returning rows."""
        pass

    @abstractmethod
    async def execute(self, query: str) -> ExecutionResult:
        """Run the query. Failures are reported in ``ExecutionResult.error``."""
        pass


def split_table_name(table_name: str) -> tuple[str, str]:
    """Split ``dataset.table``; raise ValueError on any other shape."""
    parts = table_name.strip().strip("`").split(".")
    if len(parts) != 2 or not all(parts):
        raise ValueError(
            f"Invalid table name format. Expected 'dataset.table', got '{table_name}'"
        )
    return parts[0], parts[1]


def format_table_list(tables: list[str]) -> str:
    if not tables:
        return NO_TABLES_MESSAGE
    return "Tables in the database:\n" + "\n".join(tables)


def _format_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def format_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten nested values to JSON strings; keep nulls."""
    return [{key: _format_value(value) for key, value in row.items()} for row in rows]


def format_execution_result(result: ExecutionResult) -> str:
    """Render an execution result as the text passed on to the model."""
    if result.error is not None:
        return f"Error executing query: {result.error}"
    if not result.rows:
        return NO_ROWS_MESSAGE
    return json.dumps(result.rows, indent=2, default=str)
