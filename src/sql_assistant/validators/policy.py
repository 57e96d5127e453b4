"""
Read-only Policy
================

Rejects any query that mentions a write operation.

The check is a plain substring test on the upper-cased text: keywords inside
string literals, comments or identifiers (``updated_at``) also trip it.
That false positive is accepted; a violation is never repaired.
"""

from typing import Optional

from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.validators.base import Validator

WRITE_OPERATIONS = ("INSERT", "UPDATE", "DELETE", "DROP", "CREATE", "ALTER", "TRUNCATE")


def find_write_operations(query: str) -> list[str]:
    normalized = query.strip().upper()
    return [op for op in WRITE_OPERATIONS if op in normalized]


def is_read_only(query: str) -> bool:
    return not find_write_operations(query)


class ReadOnlyValidator(Validator):
    """Fails when the query contains any write-operation keyword."""

    category = ValidationCategory.READ_ONLY

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        found = find_write_operations(query)
        if found:
            return ValidationOutcome.fail(
                f"Only SELECT queries are allowed. Found: {', '.join(found)}"
            )
        return ValidationOutcome.ok()
