"""
In-memory Data Engine
=====================

Static tables for demonstration and testing, so the service runs without
cloud credentials.
"""

import re
from typing import Any, Callable, Optional

from sql_assistant.engine.base import DataEngine, format_rows, split_table_name
from sql_assistant.models import DryRunResult, ExecutionResult
from sql_assistant.schema import format_schema_description

# Default demo data
SAMPLE_TABLES: dict[str, dict[str, Any]] = {
    "ss_the_met.objects": {
        "fields": [
            ("object_id", "INTEGER"),
            ("title", "STRING"),
            ("department", "STRING"),
            ("object_date", "STRING"),
            ("artist_display_name", "STRING"),
        ],
        "rows": [
            {"object_id": 1, "title": "Bust of a Woman", "department": "Greek and Roman Art",
             "object_date": "ca. 50 B.C.", "artist_display_name": None},
            {"object_id": 2, "title": "Wheat Field with Cypresses", "department": "European Paintings",
             "object_date": "1889", "artist_display_name": "Vincent van Gogh"},
            {"object_id": 3, "title": "The Harvesters", "department": "European Paintings",
             "object_date": "1565", "artist_display_name": "Pieter Bruegel the Elder"},
        ],
    },
}

_TABLE_REF = re.compile(r"\b(?:from|join)\s+[`\"]?([\w.-]+)[`\"]?", re.IGNORECASE)

DryRunRule = Callable[[str], Optional[str]]


class InMemoryDataEngine(DataEngine):
    """
    Data engine backed by static tables.

    The dry run accepts any query whose FROM/JOIN targets are known tables;
    a custom ``dry_run_rule`` returning an error string (or None) replaces
    that check. ``execute`` returns every row of the first referenced table.
    """

    def __init__(
        self,
        tables: Optional[dict[str, dict[str, Any]]] = None,
        dry_run_rule: Optional[DryRunRule] = None,
    ) -> None:
        self.tables = tables if tables is not None else SAMPLE_TABLES
        self.dry_run_rule = dry_run_rule
        self.dry_run_calls: list[str] = []
        self.executed: list[str] = []

    def _referenced_tables(self, query: str) -> list[str]:
        return [t.lower() for t in _TABLE_REF.findall(query)]

    async def list_tables(self) -> list[str]:
        return list(self.tables)

    async def get_schema(self, table_name: str) -> str:
        try:
            split_table_name(table_name)
        except ValueError as e:
            return f"Error: {e}"
        table = self.tables.get(table_name.strip())
        if table is None:
            return f"Error getting schema for table {table_name}: Not found"
        return format_schema_description(table_name.strip(), table["fields"])

    async def list_fields(self) -> list[str]:
        return [
            f"{name}.{field_name}"
            for name, table in self.tables.items()
            for field_name, _ in table["fields"]
        ]

    async def dry_run(self, query: str) -> DryRunResult:
        self.dry_run_calls.append(query)
        if self.dry_run_rule is not None:
            error = self.dry_run_rule(query)
            return DryRunResult(valid=error is None, error=error)

        known = {name.lower() for name in self.tables}
        referenced = self._referenced_tables(query)
        if not referenced:
            return DryRunResult(valid=False, error="Query does not reference any table")
        for table in referenced:
            if table not in known:
                return DryRunResult(valid=False, error=f"Not found: Table {table} was not found")
        return DryRunResult(valid=True)

    async def execute(self, query: str) -> ExecutionResult:
        self.executed.append(query)
        referenced = self._referenced_tables(query)
        for name, table in self.tables.items():
            if referenced and referenced[0] == name.lower():
                return ExecutionResult(rows=format_rows(table["rows"]))
        return ExecutionResult(error=f"Not found: Table {referenced[0] if referenced else ''} was not found")
