"""
Fallback Policy
===============

The fixed, policy-safe query used when refinement cannot produce a passing
query within budget, or when the read-only check fails.
"""

DEFAULT_FALLBACK_LIMIT = 10


def _quote_table(table_name: str) -> str:
    if "-" in table_name and not table_name.startswith(("`", '"')):
        return f"`{table_name}`"
    return table_name


def fallback_query(table_name: str, limit: int = DEFAULT_FALLBACK_LIMIT) -> str:
    """Return ``SELECT * FROM <table> LIMIT <limit>``."""
    return f"SELECT * FROM {_quote_table(table_name.strip())} LIMIT {limit}"
