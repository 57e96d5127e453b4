"""
Dry-run Validator
=================

Asks the data engine to plan the query without scanning data.
"""

from typing import Optional

from sql_assistant.engine.base import DataEngine
from sql_assistant.models import ValidationCategory, ValidationOutcome
from sql_assistant.validators.base import Validator


class DryRunValidator(Validator):
    """Fails with the engine's reported error when the dry run rejects the query."""

    category = ValidationCategory.DRY_RUN

    def __init__(self, engine: DataEngine) -> None:
        self.engine = engine

    async def validate(self, query: str, schema: Optional[str] = None) -> ValidationOutcome:
        result = await self.engine.dry_run(query)
        if result.valid:
            return ValidationOutcome.ok()
        return ValidationOutcome.fail(result.error or "Query failed engine validation")
