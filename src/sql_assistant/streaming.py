"""
Stream Formatting
=================

Turns assistant progress into Server-Sent Events.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class MessageKind(str, Enum):
    INFO = "info"
    ERROR = "error"
    TOOL_CALL = "tool_call"
    TOOL_RESPONSE = "tool_response"
    QUERY_GENERATED = "query_generated"
    QUERY_EXPLANATION = "query_explanation"
    FINAL_ANSWER = "final_answer"


# Tool names shown to the client
LIST_TABLES_TOOL = "list_tables_bigquery"
SCHEMA_TOOL = "sql_db_schema"
QUERY_TOOL = "db_query_tool"


@dataclass(frozen=True)
class StreamEvent:
    event: str
    data: str


def _tool_call_text(name: Optional[str], args: dict[str, Any]) -> str:
    if name == LIST_TABLES_TOOL:
        return f"Tool Called: {LIST_TABLES_TOOL}"
    if name == SCHEMA_TOOL:
        return f"Tool Called: {SCHEMA_TOOL}\nTable_name: {args.get('table_name')}"
    if name == QUERY_TOOL:
        return f"Tool Called: {QUERY_TOOL}\nQuery: {args.get('query')}"
    return f"Tool Called: {name}\nArgs: {json.dumps(args)}"


def format_message(
    kind: MessageKind,
    content: str = "",
    name: Optional[str] = None,
    args: Optional[dict[str, Any]] = None,
) -> StreamEvent:
    """Render one message as an event. Pure; no I/O."""
    if kind == MessageKind.TOOL_RESPONSE:
        data = f"Tool Response: {name or 'Unknown Tool'}\nContent: {content}"
    elif kind == MessageKind.TOOL_CALL:
        data = _tool_call_text(name, args or {})
    elif kind == MessageKind.FINAL_ANSWER:
        data = f"Final Answer: {content}"
    elif kind == MessageKind.QUERY_GENERATED:
        data = f"Generated Query: {content}"
    elif kind == MessageKind.QUERY_EXPLANATION:
        data = f"Query Explanation: {content}"
    else:
        data = str(content)
    return StreamEvent(event=kind.value, data=data)


def encode_sse(event: StreamEvent) -> bytes:
    """Encode an event in the text/event-stream wire format."""
    lines = [f"event: {event.event}"]
    lines.extend(f"data: {line}" for line in event.data.split("\n"))
    return ("\n".join(lines) + "\n\n").encode("utf-8")
