"""Server-side atomic counters.

Every increment is a single INSERT ... ON CONFLICT DO UPDATE statement, so
concurrent recorders never read-modify-write and never lose an update.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from tanlink.models.stats import ClickStat, StatBucket, ViewStat


def day_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def month_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m")


class AtomicCounterStore:
    """Atomic increments against the stats tables of one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _insert(self, table: Any) -> Any:
        dialect = self.session.bind.dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise NotImplementedError(f"Atomic increments are not supported on {dialect}")

    async def increment(
        self,
        model: Any,
        key: dict[str, Any],
        column: str,
        amount: int = 1,
        set_values: dict[str, Any] | None = None,
    ) -> None:
        """Add `amount` to `column` of the row identified by `key`.

        The row is created with `column = amount` if it does not exist.
        `set_values` are written (overwritten) in the same statement.
        """
        set_values = set_values or {}
        table = model.__table__
        stmt = self._insert(table).values(**key, **{column: amount}, **set_values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key),
            set_={column: table.c[column] + amount, **set_values},
        )
        await self.session.execute(stmt)

    async def increment_buckets(
        self,
        subject_type: str,
        subject_id: UUID,
        moment: datetime,
        amount: int = 1,
    ) -> None:
        """Bump the day and month buckets a moment falls into."""
        for period, bucket in (("day", day_key(moment)), ("month", month_key(moment))):
            await self.increment(
                StatBucket,
                {
                    "subject_type": subject_type,
                    "subject_id": subject_id,
                    "period": period,
                    "bucket": bucket,
                },
                "count",
                amount,
            )

    async def increment_views(
        self,
        profile_id: UUID,
        moment: datetime,
        visitor_handle: str | None = None,
    ) -> None:
        await self.increment(
            ViewStat,
            {"profile_id": profile_id},
            "total_views",
            set_values={
                "last_viewed_at": moment,
                "last_visitor_at": moment,
                "last_visitor_handle": visitor_handle,
            },
        )
        await self.increment_buckets("view", profile_id, moment)

    async def increment_clicks(
        self,
        link_id: UUID,
        profile_id: UUID,
        moment: datetime,
        platform: str | None,
        url: str | None,
    ) -> None:
        await self.increment(
            ClickStat,
            {"link_id": link_id},
            "total_clicks",
            set_values={
                "profile_id": profile_id,
                "last_clicked_at": moment,
                "platform": platform,
                "url": url,
            },
        )
        await self.increment_buckets("click", link_id, moment)
