"""
SQL Assistant
=============

Natural-language questions to validated, self-repairing SQL against an
analytic data store.
"""

from sql_assistant.assistant import SQLAssistant, extract_select_statement
from sql_assistant.config import Settings
from sql_assistant.engine import DataEngine, InMemoryDataEngine
from sql_assistant.errors import (
    AssistantError,
    ConfigurationError,
    DataEngineError,
    LLMUnavailableError,
    RepairInvocationError,
    SchemaParseError,
)
from sql_assistant.fallback import fallback_query
from sql_assistant.history import ChatHistoryStore
from sql_assistant.llm import LLMInterface, MockLLM
from sql_assistant.models import (
    AssistantResult,
    ChatMessage,
    LLMResponse,
    PipelineResult,
    RefinementAttempt,
    RefinementResult,
    ValidationCategory,
    ValidationOutcome,
)
from sql_assistant.normalizer import normalize_query, strip_code_fences
from sql_assistant.refinement import QueryRefiner, RefinementPipeline
from sql_assistant.repair import QueryRepairer
from sql_assistant.schema import format_schema_description, parse_schema_description
from sql_assistant.selection import TableSelector
from sql_assistant.streaming import MessageKind, StreamEvent, encode_sse, format_message
from sql_assistant.validators import (
    ComplexityValidator,
    DryRunValidator,
    NullHandlingCheck,
    ReadOnlyValidator,
    SchemaCompatibilityValidator,
    SyntaxValidator,
    TableNameQuotingCheck,
    Validator,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "ValidationCategory",
    "ValidationOutcome",
    "RefinementAttempt",
    "RefinementResult",
    "PipelineResult",
    "AssistantResult",
    "ChatMessage",
    "LLMResponse",
    # Errors
    "AssistantError",
    "ConfigurationError",
    "DataEngineError",
    "LLMUnavailableError",
    "RepairInvocationError",
    "SchemaParseError",
    # Core
    "normalize_query",
    "strip_code_fences",
    "fallback_query",
    "QueryRepairer",
    "QueryRefiner",
    "RefinementPipeline",
    "TableSelector",
    "SQLAssistant",
    "extract_select_statement",
    "format_schema_description",
    "parse_schema_description",
    # Validators
    "Validator",
    "ReadOnlyValidator",
    "SyntaxValidator",
    "SchemaCompatibilityValidator",
    "ComplexityValidator",
    "DryRunValidator",
    "TableNameQuotingCheck",
    "NullHandlingCheck",
    # Collaborators
    "LLMInterface",
    "MockLLM",
    "DataEngine",
    "InMemoryDataEngine",
    "ChatHistoryStore",
    "Settings",
    # Streaming
    "MessageKind",
    "StreamEvent",
    "format_message",
    "encode_sse",
]
