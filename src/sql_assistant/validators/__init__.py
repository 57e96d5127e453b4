"""
Validators Module
=================

Independent checks run against a candidate query.
"""

from sql_assistant.validators.base import Validator
from sql_assistant.validators.complexity import ComplexityValidator, validate_query_complexity
from sql_assistant.validators.dry_run import DryRunValidator
from sql_assistant.validators.policy import ReadOnlyValidator, is_read_only
from sql_assistant.validators.prechecks import (
    NullHandlingCheck,
    TableNameQuotingCheck,
    default_prechecks,
    validate_null_handling,
    validate_table_names,
)
from sql_assistant.validators.schema import (
    SchemaCompatibilityValidator,
    validate_schema_compatibility,
)
from sql_assistant.validators.syntax import SyntaxValidator, validate_sql_syntax

__all__ = [
    "Validator",
    "ReadOnlyValidator",
    "SyntaxValidator",
    "SchemaCompatibilityValidator",
    "ComplexityValidator",
    "DryRunValidator",
    "TableNameQuotingCheck",
    "NullHandlingCheck",
    "default_prechecks",
    "is_read_only",
    "validate_sql_syntax",
    "validate_schema_compatibility",
    "validate_query_complexity",
    "validate_table_names",
    "validate_null_handling",
]
