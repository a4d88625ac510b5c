"""
Typed query parameters for the ClickHouse HTTP interface.

Queries are sent as plain text, so every value that reaches the query
goes through a typed wrapper:

- String: escaped and single-quoted
- UInt: validated as a non-negative int and written bare
- DateTime: formatted as 'YYYY-MM-DD HH:MM:SS' in UTC

A Query refuses raw Python values, so an unescaped string can't be
interpolated by accident.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional


NULL = "NULL"


def escape(value: str) -> str:
    """
    Escape a string for use inside a single-quoted ClickHouse literal.

    Backslashes are doubled first, then single quotes are doubled, so
    the quote rule never produces a backslash sequence.
    """
    return value.replace("\\", "\\\\").replace("'", "''")


class SqlValue(ABC):
    """A value that knows how to render itself into query text"""

    @abstractmethod
    def render(self) -> str:
        pass


@dataclass(frozen=True)
class String(SqlValue):
    value: Optional[str]

    def __post_init__(self):
        if self.value is not None and not isinstance(self.value, str):
            raise TypeError(f"String parameter expects str, got {type(self.value).__name__}")

    def render(self) -> str:
        if self.value is None:
            return NULL
        return f"'{escape(self.value)}'"


@dataclass(frozen=True)
class UInt(SqlValue):
    value: Optional[int]

    def __post_init__(self):
        if self.value is None:
            return
        # bool is a subclass of int
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"UInt parameter expects int, got {type(self.value).__name__}")
        if self.value < 0:
            raise ValueError(f"UInt parameter must be non-negative, got {self.value}")

    def render(self) -> str:
        if self.value is None:
            return NULL
        return str(self.value)


@dataclass(frozen=True)
class DateTime(SqlValue):
    """
    A timestamp written as a UTC wall-clock literal.

    Aware values are converted to UTC; naive values are taken as UTC
    already. The url_clicks columns are declared DateTime('UTC') so the
    literal is read back in the same zone.
    """

    value: datetime

    def __post_init__(self):
        if not isinstance(self.value, datetime):
            raise TypeError(f"DateTime parameter expects datetime, got {type(self.value).__name__}")

    def render(self) -> str:
        value = self.value
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return f"'{value.strftime('%Y-%m-%d %H:%M:%S')}'"


class Query:
    """
    A named query template with typed parameters.

    Placeholders use str.format syntax ({short_url_id}). Rendered values
    are not re-scanned, so braces inside a string value are harmless.

    Example:
        >>> Query("total", "SELECT count() FROM t WHERE id = {id}", id=UInt(7)).render()
        'SELECT count() FROM t WHERE id = 7'
    """

    def __init__(self, name: str, template: str, **params: SqlValue):
        for key, value in params.items():
            if not isinstance(value, SqlValue):
                raise TypeError(
                    f"Parameter '{key}' of query '{name}' must be a SqlValue "
                    f"(String, UInt, DateTime), got {type(value).__name__}"
                )
        self.name = name
        self.template = template
        self.params: Dict[str, SqlValue] = params

    def render(self) -> str:
        rendered = {key: value.render() for key, value in self.params.items()}
        try:
            return self.template.format_map(rendered)
        except KeyError as e:
            raise ValueError(f"Unbound parameter {e} in query '{self.name}'") from e

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Query(name={self.name!r})"
