"""
Schema Compatibility Validator
==============================

Checks that a query references the table named in the schema description,
and warns about words that are neither known columns nor SQL keywords.
"""

import re
from typing import Optional

from sql_assistant.errors import SchemaParseError
from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.schema import parse_schema_description
from sql_assistant.validators.base import Validator

ALLOWED_KEYWORDS = frozenset({
    "select", "from", "where", "group", "by", "having", "order", "limit",
    "offset", "and", "or", "not", "as", "join", "on", "inner", "outer",
    "left", "right", "full", "cross", "union", "all", "distinct", "count",
    "sum", "avg", "min", "max", "*",
})

_SPLIT = re.compile(r"\s+|,|\(|\)|\.")
_NUMBER = re.compile(r"^\d+$")


def unknown_tokens(query: str, column_names: list[str]) -> list[str]:
    """Words in the query that are not columns, allowed keywords or numbers."""
    known = set(column_names)
    seen: list[str] = []
    for word in _SPLIT.split(query.lower()):
        if not word or word in known or word in ALLOWED_KEYWORDS or _NUMBER.match(word):
            continue
        if word not in seen:
            seen.append(word)
    return seen


def validate_schema_compatibility(query: str, schema: str) -> ValidationOutcome:
    """
    Validate the query against a schema description.

    A missing table reference fails. Unrecognised words only produce a
    warning: the outcome stays valid, so they never trigger repair.
    """
    try:
        info = parse_schema_description(schema)
    except SchemaParseError as e:
        return ValidationOutcome.fail(str(e))

    if info.table_name.lower() not in query.lower():
        return ValidationOutcome.fail(f"Query does not reference the table {info.table_name}")

    unknown = unknown_tokens(query, info.column_names)
    if unknown:
        return ValidationOutcome.ok(
            f"Warning: Query may reference columns not in schema: {', '.join(unknown)}"
        )
    return ValidationOutcome.ok()


class SchemaCompatibilityValidator(Validator):
    """Validates table and column references against the schema description."""

    category = ValidationCategory.SCHEMA

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        if schema is None:
            return ValidationOutcome.fail("No schema information available")
        return validate_schema_compatibility(query, schema)
