"""
Helpers for raw query results.

COUNT queries come back as a plain int from session.exec(select(func.count()))
but as a Row from session.execute(text(...)); scalar_int() accepts both.
"""
from typing import Any


def scalar_int(value: Any) -> int:
    """Coerce a COUNT/aggregate result (int, Row or 1-tuple) to int."""
    if isinstance(value, int):
        return value
    if value is None:
        return 0
    return int(value[0])
