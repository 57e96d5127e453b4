"""
Schema Descriptions
===================

The formatted text block naming one table and its columns::

    Schema for table dataset.table:
    - column (TYPE)
"""

import re

from sql_assistant.errors import SchemaParseError
from sql_assistant.models import ColumnInfo, SchemaInfo

_HEADER = re.compile(r"^Schema for table (.+):\s*$")


def format_schema_description(table_name: str, fields: list[tuple[str, str]]) -> str:
    """Render a table's fields in the schema description shape."""
    lines = [f"Schema for table {table_name}:"]
    lines.extend(f"- {name} ({field_type})" for name, field_type in fields)
    return "\n".join(lines)


def parse_schema_description(schema: str) -> SchemaInfo:
    """
    Parse a schema description block.

    Raises:
        SchemaParseError: if the first line is not a schema header
    """
    lines = schema.split("\n")
    match = _HEADER.match(lines[0].strip()) if lines else None
    if not match:
        raise SchemaParseError("Could not extract table name from schema")

    columns = []
    for line in lines[1:]:
        if not line.startswith("- "):
            continue
        parts = line[2:].split(" ", 1)
        col_type = parts[1].strip().strip("()") if len(parts) > 1 else ""
        columns.append(ColumnInfo(name=parts[0], type=col_type))

    return SchemaInfo(table_name=match.group(1), columns=columns)
