import os

# Config is validated at import time
os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["EMAIL_BACKEND"] = "console"

import itertools
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quoteflow.core.db import Base
from quoteflow.models.enums.job_status import JobStatus
from quoteflow.models.enums.quote_status import QuoteStatus
from quoteflow.models.jobs.job_models import Job
from quoteflow.models.quotes.quote_models import Quote
from quoteflow.models.support.audit_log_models import AuditLog
from quoteflow.models.users.user_models import User
from quoteflow.services.status_flow.status_flow_service import build_status_flow_service


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def status_flow(db):
    return build_status_flow_service(db)


@pytest.fixture()
def make_quote(db):
    counter = itertools.count(1)

    async def _make(**fields) -> Quote:
        values = {
            "tenant_id": 1,
            "quote_number": f"Q-2026-{next(counter):04d}",
            "customer_name": "Jane Customer",
            "customer_email": "jane@example.com",
            "status": QuoteStatus.draft,
        }
        values.update(fields)
        quote = Quote(**values)
        db.add(quote)
        await db.commit()
        await db.refresh(quote)
        return quote

    return _make


@pytest.fixture()
def make_expired_portal_quote(make_quote):
    async def _make(**fields) -> Quote:
        values = {
            "status": QuoteStatus.deposit_paid,
            "deposit_verified": True,
            "portal_open": True,
            "portal_opened_at": utcnow() - timedelta(days=15),
            "portal_closed_at": utcnow() - timedelta(days=1),
        }
        values.update(fields)
        return await make_quote(**values)

    return _make


@pytest.fixture()
def make_job(db):
    counter = itertools.count(1)

    async def _make(quote: Quote, **fields) -> Job:
        values = {
            "tenant_id": quote.tenant_id,
            "quote_id": quote.id,
            "job_number": f"JOB-2026-{next(counter):04d}",
            "job_name": f"Job for {quote.quote_number}",
            "customer_name": quote.customer_name,
            "status": JobStatus.deposit_paid,
        }
        values.update(fields)
        job = Job(**values)
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job

    return _make


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    async def _make(role: str = "admin", **fields) -> User:
        values = {
            "tenant_id": 1,
            "username": f"{role}{next(counter)}@contractor.test",
            "full_name": f"Test {role}",
            "password_hash": "not-a-real-hash",
            "role": role,
            "is_active": True,
        }
        values.update(fields)
        user = User(**values)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture()
def audit_actions(db):
    async def _fetch(entity_type: str, entity_id: int) -> list[str]:
        result = await db.execute(
            select(AuditLog.action)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id)
        )
        return list(result.scalars().all())

    return _fetch


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def notify(self, recipient, template_key, template_data):
        self.sent.append((recipient, template_key, template_data))
        return True


@pytest.fixture()
def notifier():
    return RecordingNotifier()
