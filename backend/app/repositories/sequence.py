from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from backend.app.models.quotes import QuoteNumberCounter
from backend.app.repositories.base import storage_errors


class SqlQuoteNumberSequence:
    """Per-epoch counter advanced by one conditional UPDATE ... RETURNING.

    The counter row is created on first use with INSERT ... ON CONFLICT DO
    NOTHING, so concurrent first callers race safely. The row lock taken by
    the UPDATE is held until the caller's transaction ends.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _insert(self):  # type: ignore[no-untyped-def]
        if self.db.get_bind().dialect.name == "postgresql":
            return pg_insert(QuoteNumberCounter)
        return sqlite_insert(QuoteNumberCounter)

    def reserve_next(self, epoch: str) -> int:
        with storage_errors("DB_UPDATE_ERROR"):
            self.db.execute(
                self._insert()
                .values(epoch=epoch, last_value=0)
                .on_conflict_do_nothing(index_elements=["epoch"])
            )
            return self.db.execute(
                update(QuoteNumberCounter)
                .where(QuoteNumberCounter.epoch == epoch)
                .values(last_value=QuoteNumberCounter.last_value + 1)
                .returning(QuoteNumberCounter.last_value)
                .execution_options(synchronize_session=False)
            ).scalar_one()
