"""
Syntax Validator
================

Validates SQL syntax with sqlglot's parser.
"""

from typing import Optional

import sqlglot
from sqlglot.errors import SqlglotError

from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.validators.base import Validator


def validate_sql_syntax(query: str, dialect: str = "bigquery") -> ValidationOutcome:
    """Parse the query; on failure return the parser's message."""
    try:
        sqlglot.parse_one(query, read=dialect)
    except SqlglotError as e:
        return ValidationOutcome.fail(str(e) or type(e).__name__)
    return ValidationOutcome.ok()


class SyntaxValidator(Validator):
    """Validates SQL syntax against a sqlglot dialect."""

    category = ValidationCategory.SYNTAX

    def __init__(self, dialect: str = "bigquery") -> None:
        self.dialect = dialect

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        return validate_sql_syntax(query, self.dialect)
