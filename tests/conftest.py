"""
Shared test fixtures.
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from medprice.dependencies import get_db, get_mailer
from medprice.main import app
from medprice.models.database import Base
from medprice.models.tables import Provider, Report, UserProfile
from medprice.notify.email import AdminMailer


class RecordingMailer(AdminMailer):
    """Collects alert mails instead of talking to SMTP."""

    def __init__(self):
        super().__init__(host="smtp.test", recipient="admin@test")
        self.sent: list[dict] = []

    async def send_admin_mail(self, subject: str, html: str, kind: str = "generic") -> bool:
        self.sent.append({"subject": subject, "html": html, "kind": kind})
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def seed(session_factory):
    """Insert rows in a short-lived session so request sessions see committed data."""
    async def _seed(*objects):
        async with session_factory() as s:
            s.add_all(objects)
            await s.commit()
        return objects
    return _seed


@pytest.fixture
async def provider(session):
    row = Provider(name="강남 바른의원", region="서울", auto_trust_score=0.5)
    session.add(row)
    await session.commit()
    return row


@pytest.fixture
async def reporter(session):
    row = UserProfile(id="user-1", email="user@test", trust_score=0.5)
    session.add(row)
    await session.commit()
    return row


@pytest.fixture
def make_report(session, now):
    """Factory for a fully filled pending report; override any field."""
    async def _make(**fields):
        values = {
            "category": "price_error",
            "content": "도수치료 1회 가격이 8만원에서 12만원으로 인상되었습니다. 확인 부탁드립니다.",
            "price": 120000,
            "status": "pending",
            "priority": "normal",
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        report = Report(**values)
        session.add(report)
        await session.commit()
        return report
    return _make


@pytest.fixture
async def client(session_factory, mailer):
    async def _get_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def minutes_ago(now):
    def _ago(minutes: int) -> datetime:
        return now - timedelta(minutes=minutes)
    return _ago
