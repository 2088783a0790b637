import enum
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


class UpsertOutcome(str, enum.Enum):
    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(frozen=True)
class UpsertResult:
    outcome: UpsertOutcome
    id: Union[uuid.UUID, str]


_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, model):
    """Return the dialect-specific INSERT construct that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise ValueError(f"ON CONFLICT inserts are not supported on dialect {dialect!r}")
    return insert(model)


def chunked(rows: List[Dict], size: int) -> Iterable[List[Dict]]:
    for i in range(0, len(rows), size):
        yield rows[i:i + size]


async def insert_skip_duplicates(db: AsyncSession, model, rows: List[Dict], index_elements: List, chunk_size: int) -> None:
    """Bulk insert ``rows`` in chunks, silently skipping rows that hit ``index_elements``."""
    for chunk in chunked(rows, chunk_size):
        stmt = dialect_insert(db, model).on_conflict_do_nothing(index_elements=index_elements)
        await db.execute(stmt, chunk)
