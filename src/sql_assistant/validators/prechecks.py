"""
Pre-checks
==========

Text checks run once per normalization pass, before the per-category
validators. A failure here asks for a repair straight away.
"""

import re
from typing import Optional

from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.validators.base import Validator

# An identifier right after FROM/JOIN that contains a hyphen and does not
# start with a quote or backtick.
_UNQUOTED_HYPHENATED = re.compile(r"\b(?:from|join)\s+([\w.]*-[\w.-]*)", re.IGNORECASE)
_AGGREGATE_CALL = re.compile(r"\b(?:sum|avg|min|max)\s*\([^)]*\)", re.IGNORECASE)
_NULL_COALESCING = ("coalesce", "ifnull")


def validate_table_names(query: str) -> ValidationOutcome:
    found = [m.group(0) for m in _UNQUOTED_HYPHENATED.finditer(query)]
    if found:
        return ValidationOutcome.fail(
            "Table names containing hyphens must be wrapped in backticks or "
            f"double quotes: {', '.join(found)}"
        )
    return ValidationOutcome.ok()


def validate_null_handling(query: str) -> ValidationOutcome:
    unhandled = [
        call for call in _AGGREGATE_CALL.findall(query)
        if not any(fn in call.lower() for fn in _NULL_COALESCING)
    ]
    if unhandled:
        return ValidationOutcome.fail(
            f"Numeric operations should handle null values using COALESCE: {', '.join(unhandled)}"
        )
    return ValidationOutcome.ok()


class TableNameQuotingCheck(Validator):
    category = ValidationCategory.TABLE_NAMES

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        return validate_table_names(query)


class NullHandlingCheck(Validator):
    category = ValidationCategory.NULL_HANDLING

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        return validate_null_handling(query)


def default_prechecks() -> list[Validator]:
    return [TableNameQuotingCheck(), NullHandlingCheck()]
