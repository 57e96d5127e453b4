"""
Errors
======

Exceptional conditions. A query failing a check is not one of them: that is
a normal ``ValidationOutcome``.
"""


class AssistantError(Exception):
    """Base class for errors raised by the assistant."""


class ConfigurationError(AssistantError):
    """Raised when required configuration is missing or invalid."""


class LLMUnavailableError(AssistantError):
    """The language model call failed (network, quota, timeout)."""


class RepairInvocationError(LLMUnavailableError):
    """The language model failed while asked to repair a query."""


class SchemaParseError(AssistantError):
    """A schema description does not have the expected shape."""


class DataEngineError(AssistantError):
    """The data engine could not be reached for listing or schema lookup."""
