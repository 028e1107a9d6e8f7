"""Remote store interface consumed by the state containers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Sequence, TypeVar

from pydantic import ValidationError

from kinoteka.errors import StoreError

logger = logging.getLogger(__name__)

Row = dict[str, Any]

T = TypeVar("T")


@dataclass(frozen=True)
class Filter:
    """A single column predicate. Patterns for `ilike` use SQL `%` wildcards."""

    column: str
    op: str  # "eq", "in" or "ilike"
    value: Any


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


def ilike(column: str, pattern: str) -> Filter:
    return Filter(column, "ilike", pattern)


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


@dataclass
class SelectResult:
    rows: list[Row] = field(default_factory=list)
    count: int | None = None  # Only populated when an exact count was requested


class RemoteStore(ABC):
    """
    Row-oriented access to the hosted tables plus RPC calls.

    Implementations raise StoreError for every failure, whether the server
    rejected the request or it never arrived.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        offset: int | None = None,
        limit: int | None = None,
        count: bool = False,
        head: bool = False,
    ) -> SelectResult:
        """
        Read rows from a table.

        Args:
            table: Table name
            columns: Column list, may embed related rows (e.g. "*,user:user_id(name)")
            filters: Predicates combined with AND
            order: Optional sort
            offset: First row index (requires limit)
            limit: Maximum number of rows
            count: Request an exact count of all matching rows
            head: Return only the count, no rows
        """

    @abstractmethod
    async def insert(self, table: str, values: Row, columns: str = "*") -> Row:
        """Insert one row and return it as stored."""

    @abstractmethod
    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        """Update matching rows and return them as stored."""

    @abstractmethod
    async def delete(self, table: str, filters: Sequence[Filter]) -> None:
        """Delete matching rows."""

    @abstractmethod
    async def rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a stored procedure and return its decoded result."""


def parse_row(parse: Callable[[Row], T], row: Row) -> T:
    """
    Turn a store row into a model with `parse` (e.g. `Movie.model_validate`).

    Raises:
        StoreError: The row does not fit the model
    """
    try:
        return parse(row)
    except ValidationError as e:
        logger.error(f"Malformed row {row.get('id', '?')} from store: {e}")
        raise StoreError(
            f"Received malformed data from the server ({e.error_count()} invalid field(s))."
        ) from e
