from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncIterator, Protocol

from sqlalchemy import Integer, case, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.models.jobs.job_models import Job
from quoteflow.models.quotes.quote_models import Quote
from quoteflow.models.users.user_models import User


class EntityStore(Protocol):
    def transaction(self): ...

    async def get_quote(self, quote_id: int, tenant_id: int | None = None, *, for_update: bool = False) -> Quote | None: ...

    async def get_job(self, job_id: int, tenant_id: int | None = None, *, for_update: bool = False) -> Job | None: ...

    async def get_job_for_quote(self, quote_id: int, *, for_update: bool = False) -> Job | None: ...

    async def write_status(self, entity, expected_status, values: dict[str, Any]) -> bool: ...

    async def update_fields(self, entity, values: dict[str, Any]) -> None: ...

    async def create_job(self, values: dict[str, Any]) -> Job: ...

    async def next_job_number(self, tenant_id: int, year: int) -> str: ...

    async def list_expired_portal_quote_ids(self, now: datetime, tenant_id: int | None = None) -> list[int]: ...

    async def list_overdue_quote_ids(self, today: date) -> list[int]: ...

    async def find_contractor_email(self, tenant_id: int) -> str | None: ...


class SqlEntityStore:
    """Quote/Job persistence over one AsyncSession.

    ``transaction()`` is re-entrant: only the outermost scope commits or rolls
    back, so a caller can wrap several engine calls in one unit of work.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._depth = 0

    # -------------------------
    # Transactions
    # -------------------------
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise
        finally:
            self._depth = 0

    # -------------------------
    # Reads
    # -------------------------
    async def _fetch_one(self, stmt, for_update: bool):
        if for_update:
            stmt = stmt.with_for_update()
        # Always overwrite identity-map state with what is persisted
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_quote(self, quote_id, tenant_id=None, *, for_update=False):
        stmt = select(Quote).where(
            Quote.id == quote_id,
            Quote.is_deleted.is_(False),
        )
        if tenant_id is not None:
            stmt = stmt.where(Quote.tenant_id == tenant_id)
        return await self._fetch_one(stmt, for_update)

    async def get_job(self, job_id, tenant_id=None, *, for_update=False):
        stmt = select(Job).where(
            Job.id == job_id,
            Job.is_deleted.is_(False),
        )
        if tenant_id is not None:
            stmt = stmt.where(Job.tenant_id == tenant_id)
        return await self._fetch_one(stmt, for_update)

    async def get_job_for_quote(self, quote_id, *, for_update=False):
        stmt = select(Job).where(
            Job.quote_id == quote_id,
            Job.is_deleted.is_(False),
        )
        return await self._fetch_one(stmt, for_update)

    async def list_expired_portal_quote_ids(self, now, tenant_id=None):
        stmt = select(Quote.id).where(
            Quote.portal_open.is_(True),
            Quote.portal_closed_at.isnot(None),
            Quote.portal_closed_at <= now,
            Quote.is_deleted.is_(False),
        )
        if tenant_id is not None:
            stmt = stmt.where(Quote.tenant_id == tenant_id)
        result = await self.db.execute(stmt.order_by(Quote.id))
        return list(result.scalars().all())

    async def list_overdue_quote_ids(self, today):
        result = await self.db.execute(
            select(Quote.id)
            .where(
                Quote.status.in_([QuoteStatus.sent, QuoteStatus.viewed]),
                Quote.valid_until.isnot(None),
                Quote.valid_until < today,
                Quote.is_deleted.is_(False),
            )
            .order_by(Quote.id)
        )
        return list(result.scalars().all())

    async def find_contractor_email(self, tenant_id):
        return await self.db.scalar(
            select(User.username)
            .where(
                User.tenant_id == tenant_id,
                User.is_active.is_(True),
            )
            .order_by(case((User.role == "admin", 0), else_=1), User.id)
            .limit(1)
        )

    # -------------------------
    # Writes
    # -------------------------
    async def write_status(self, entity, expected_status, values):
        """Conditional write: applies ``values`` only while the row is still in ``expected_status``."""
        model = type(entity)
        result = await self.db.execute(
            update(model)
            .where(
                model.id == entity.id,
                model.status == expected_status,
            )
            .values(**values, version=model.version + 1)
            .returning(model.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            return False

        await self.db.refresh(entity)
        return True

    async def update_fields(self, entity, values):
        model = type(entity)
        await self.db.execute(
            update(model)
            .where(model.id == entity.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.refresh(entity)

    async def create_job(self, values):
        job = Job(**values)
        self.db.add(job)
        await self.db.flush()
        await self.db.refresh(job)
        return job

    async def next_job_number(self, tenant_id, year):
        """Next ``JOB-<year>-NNNN`` for the tenant; numbering restarts each year.

        Two concurrent hand-offs can compute the same number. The
        ``uq_job_tenant_number`` constraint rejects the second insert, which
        rolls back that deposit confirmation instead of duplicating the number.
        """
        prefix = f"JOB-{year}-"
        highest = await self.db.scalar(
            select(func.max(cast(func.substr(Job.job_number, len(prefix) + 1), Integer)))
            .where(
                Job.tenant_id == tenant_id,
                Job.job_number.like(f"{prefix}%"),
            )
        )
        return f"{prefix}{(highest or 0) + 1:04d}"
