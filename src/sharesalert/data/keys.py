"""Cache key builders for the data-access layer.

Keys are colon-delimited, most general segment first, with a literal ``all``
segment standing in for "no filter".
"""

ALL = "all"

STOCKS_ALL = "stocks:all"
ALERTS_PREFIX = "alerts:"


def _segment(value: str | None) -> str:
    return value if value else ALL


def stock_key(symbol: str) -> str:
    return f"stock:{symbol.upper()}"


def stock_details_key(symbol: str) -> str:
    return f"stock:details:{symbol.upper()}"


def alerts_key(status: str | None = None, user_id: str | None = None) -> str:
    """Key for an alert list filtered by status and user."""
    return f"{ALERTS_PREFIX}{_segment(status)}:{_segment(user_id)}"
