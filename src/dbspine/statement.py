"""Statement intent detection and parameter binding.

``classify_statement`` chooses the result shape of
:meth:`dbspine.connection.Connection.query` from the raw SQL text. It is a
keyword match, not a parser, and checks in this order::

    SELECT ...            -> ROWS       (list of rows, possibly empty)
    INSERT INTO ...       -> INSERT     (generated id)
    anything else         -> MUTATION   (affected row count)

Known blind spots, kept on purpose for predictability:

- ``INSERT INTO t SELECT ...`` and ``UPDATE ... (SELECT ...)`` classify as
  ROWS; they still run and commit, and return ``[]``.
- Keywords inside comments or string literals still count.
- Multi-statement batches are classified by whichever keyword appears.

Callers that need a specific shape use the explicit entry points
(``fetch_all``, ``fetch_one``, ``execute``, ``execute_insert``) instead.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from dbspine.errors import ValidationError

Parameters = Sequence[Any] | Mapping[str, Any] | None


class StatementIntent(str, Enum):
    """Result shape implied by a raw statement."""

    ROWS = "rows"           # list of row dicts
    INSERT = "insert"       # generated identifier
    MUTATION = "mutation"   # affected row count


_SELECT = re.compile(r"\bSELECT\b", re.IGNORECASE)
_INSERT_INTO = re.compile(r"\bINSERT\s+INTO\b", re.IGNORECASE)


def classify_statement(statement: str) -> StatementIntent:
    """Guess the intent of *statement* from its keywords.

    >>> classify_statement("select * from users limit 1")
    <StatementIntent.ROWS: 'rows'>
    >>> classify_statement("INSERT INTO users (name) VALUES (?)")
    <StatementIntent.INSERT: 'insert'>
    >>> classify_statement("DELETE FROM users")
    <StatementIntent.MUTATION: 'mutation'>
    """
    if _SELECT.search(statement):
        return StatementIntent.ROWS
    if _INSERT_INTO.search(statement):
        return StatementIntent.INSERT
    return StatementIntent.MUTATION


def bind_parameters(statement: str, parameters: Parameters) -> tuple[str, dict[str, Any]]:
    """Normalise *statement* and *parameters* for ``sqlalchemy.text()``.

    Mappings are passed through for ``:name`` placeholders. Sequences fill
    ``?`` placeholders in order; each ``?`` outside a quoted literal is
    rewritten to ``:p0``, ``:p1``, ... Colons inside quoted literals are
    escaped so ``'at 10:30'`` is not read as a bind. Values are never
    spliced into the SQL.

    Raises:
        ValidationError: If the number of ``?`` placeholders and values differ,
            or *parameters* is a bare string.
    """
    if isinstance(parameters, (str, bytes)):
        raise ValidationError(
            "Parameters must be a sequence or mapping, not a string",
            field="parameters",
        )

    positional = parameters is not None and not isinstance(parameters, Mapping)

    rewritten: list[str] = []
    quote: str | None = None
    idx = 0
    for ch in statement:
        if quote:
            if ch == quote:
                quote = None
            rewritten.append("\\:" if ch == ":" else ch)
        elif ch in ("'", '"'):
            quote = ch
            rewritten.append(ch)
        elif ch == "?" and positional:
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    sql = "".join(rewritten)

    if parameters is None:
        return sql, {}
    if isinstance(parameters, Mapping):
        return sql, dict(parameters)

    values = list(parameters)
    if idx != len(values):
        raise ValidationError(
            f"Statement has {idx} placeholder(s) but {len(values)} parameter(s) were given",
            field="parameters",
        )
    return sql, {f"p{i}": v for i, v in enumerate(values)}


__all__ = [
    "Parameters",
    "StatementIntent",
    "classify_statement",
    "bind_parameters",
]
