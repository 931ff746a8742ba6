"""
Identifier helpers for building session table queries.

Table references can be given as a single name ('session'), a sequence of
name parts (['public', 'session']) or an already normalized TableIdentifier.
At most two parts are accepted: a schema and a table name.
Every query is built from the normalized handle; SQLAlchemy quotes the
identifiers when the statement is compiled.

Field names can be converted between camelCase (Python-side presentation)
and snake_case (database columns). Acronym runs are not split: 'HTTPServer'
becomes 'httpserver', not 'http_server'.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence, Union

from pydantic import BaseModel
from sqlalchemy import column
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import ColumnClause

from sql_session_store.core.exceptions import UnsupportedInputError

if TYPE_CHECKING:
    from sqlalchemy import MetaData, Table

_UPPERCASE_RUN = re.compile(r"[A-Z]+")
_SNAKE_SEGMENT = re.compile(r"_([a-z0-9])")

MAX_IDENTIFIER_PARTS = 2  # schema, table


@dataclass(frozen=True)
class TableIdentifier:
    """Normalized, possibly schema-qualified, table identifier"""

    names: tuple[str, ...]

    def __post_init__(self):
        if not 0 < len(self.names) <= MAX_IDENTIFIER_PARTS:
            raise UnsupportedInputError(
                "table identifier must have a table name and at most one schema",
                details={"parts": len(self.names)},
            )

    @property
    def name(self) -> str:
        return self.names[-1]

    @property
    def schema(self) -> str | None:
        if len(self.names) == 1:
            return None
        return self.names[0]

    def to_table(self, metadata: MetaData | None = None) -> Table:
        """Return the session table layout bound to this identifier"""
        from sqlalchemy import MetaData

        from sql_session_store.db.models.session_store import SessionData

        return SessionData.__table__.to_metadata(
            metadata if metadata is not None else MetaData(),
            schema=self.schema,
            name=self.name,
        )

    def __str__(self) -> str:
        return ".".join(self.names)


IdentifierInput = Union[str, Sequence[str], TableIdentifier]


def camel_to_snake(value: str = "") -> str:
    """Convert a camelCase string to lower_snake_case."""
    converted = _UPPERCASE_RUN.sub(lambda match: f"_{match.group(0).lower()}", value)
    return re.sub(r"^_", "", converted)


def snake_to_camel(value: str = "") -> str:
    """Convert a lower_snake_case string to camelCase."""
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), value)


def _is_name_sequence(value: object) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) > 0
        and all(isinstance(part, str) and part for part in value)
    )


def normalize_identifier(value: IdentifierInput) -> TableIdentifier:
    """
    Return a TableIdentifier for the given name, name parts or identifier.

    An existing TableIdentifier is returned unchanged.

    Raises:
        UnsupportedInputError: if the value is none of the supported shapes,
            or has more than two name parts
    """
    if isinstance(value, TableIdentifier):
        return value

    if _is_name_sequence(value):
        return TableIdentifier(tuple(value))

    if isinstance(value, str) and value:
        return TableIdentifier((value,))

    raise UnsupportedInputError(
        "normalize_identifier: unsupported input type",
        details={"type": type(value).__name__},
    )


def normalize_identifier_camel_to_snake(value: IdentifierInput) -> TableIdentifier:
    """
    Like normalize_identifier() but converts camelCase name parts to snake_case.

    An existing TableIdentifier is returned unchanged.
    """
    if isinstance(value, TableIdentifier):
        return value

    if _is_name_sequence(value):
        return normalize_identifier([camel_to_snake(part) for part in value])

    if isinstance(value, str) and value:
        return normalize_identifier(camel_to_snake(value))

    raise UnsupportedInputError(
        "normalize_identifier_camel_to_snake: unsupported input type",
        details={"type": type(value).__name__},
    )


def _field_names(model: type[BaseModel]) -> Iterable[str]:
    return (camel_to_snake(name) for name in model.model_fields)


def build_column_list(model: type[BaseModel]) -> list[ColumnClause]:
    """
    Build the snake_case column list for a pydantic model, in field order.

    Used for explicit SELECT lists so new table columns never change the
    shape of a result.
    """
    return [column(name) for name in _field_names(model)]


def render_column_list(model: type[BaseModel], dialect: Dialect) -> str:
    """Render the model's column list as comma-joined quoted identifiers"""
    preparer = dialect.identifier_preparer
    return ", ".join(preparer.quote_identifier(name) for name in _field_names(model))
