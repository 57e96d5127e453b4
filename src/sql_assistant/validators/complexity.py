"""
Complexity Validator
====================

Bounds the number of joins and nested subqueries.
"""

import re
from typing import Optional

from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.validators.base import Validator

MAX_JOINS = 3
MAX_SUBQUERIES = 2

_JOIN = re.compile(r"join", re.IGNORECASE)
_SUBQUERY = re.compile(r"\(select", re.IGNORECASE)


def validate_query_complexity(query: str) -> ValidationOutcome:
    join_count = len(_JOIN.findall(query))
    if join_count > MAX_JOINS:
        return ValidationOutcome.fail(
            f"Query has too many joins ({join_count}). Maximum allowed is {MAX_JOINS}."
        )

    subquery_count = len(_SUBQUERY.findall(query))
    if subquery_count > MAX_SUBQUERIES:
        return ValidationOutcome.fail(
            f"Query has too many nested subqueries ({subquery_count}). "
            f"Maximum allowed is {MAX_SUBQUERIES}."
        )

    return ValidationOutcome.ok()


class ComplexityValidator(Validator):
    category = ValidationCategory.COMPLEXITY

    def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        return validate_query_complexity(query)
