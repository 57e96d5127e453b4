"""
Query Normalizer
================

Deterministic rewriting applied before and after every check. Normalizing
an already normalized query returns it unchanged.
"""

import re

DEFAULT_ROW_LIMIT = 1000

# Language tag on its own line, or a SQL tag followed by the query on the same line
_LANG_TAG = r"(?:[A-Za-z0-9_-]*[ \t]*\n|(?:sql|SQL|bigquery|googlesql)[ \t]+)"

_FENCE = re.compile(rf"^```{_LANG_TAG}?(.*?)\n?```$", re.DOTALL)
_LIMIT = re.compile(r"\blimit\b", re.IGNORECASE)
_FENCE_MARKUP = re.compile(rf"```{_LANG_TAG}?")


def strip_code_fences(text: str) -> str:
    """Remove surrounding whitespace and every enclosing markdown code fence."""
    sql = text.strip()
    while sql.startswith("```"):
        match = _FENCE.match(sql)
        if match:
            sql = match.group(1).strip()
        else:
            # Unterminated fence: drop the opening marker only
            sql = _FENCE_MARKUP.sub("", sql, count=1).strip()
    return sql


def has_limit(query: str) -> bool:
    return bool(_LIMIT.search(query))


def normalize_query(query: str, row_limit: int = DEFAULT_ROW_LIMIT) -> str:
    """
    Strip code fences and whitespace, then cap the row count.

    A ``LIMIT`` clause is appended only when the query has none.
    """
    sql = strip_code_fences(query)
    if not sql or has_limit(sql):
        return sql

    sql = sql.rstrip(";").rstrip()
    if not sql:
        return sql
    # A trailing line comment would swallow the clause
    separator = "\n" if "--" in sql.rsplit("\n", 1)[-1] else " "
    return f"{sql}{separator}LIMIT {row_limit}"


def remove_fence_markup(text: str) -> str:
    """Drop every code-fence marker, wherever it appears in the text."""
    return _FENCE_MARKUP.sub("", strip_code_fences(text)).strip()
