"""
Base Validator Classes
======================

Abstract base class shared by every check run against a candidate query.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Optional, Union

from sql_assistant.models import ValidationCategory, ValidationOutcome


class Validator(ABC):
    """
    Base class for all validators.

    Validators hold no per-call state: ``validate`` inspects the query (and
    the schema description, where relevant) and returns an outcome. An
    invalid query is a normal return value, never an exception.
    """

    category: ValidationCategory

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def validate(
        self, query: str, schema: Optional[str] = None
    ) -> Union[ValidationOutcome, Awaitable[ValidationOutcome]]:
        """
        Check the query against this validator's rules.

        Args:
            query: The SQL query to check
            schema: Schema description of the target table, if known

        Returns:
            ValidationOutcome (or an awaitable of one for engine-backed checks)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.name}(category={self.category.value!r})"
