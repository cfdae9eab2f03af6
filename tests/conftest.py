"""테스트 인프라 — 임시 SQLite DB, 요청별 세션, httpx 클라이언트 픽스처.

Test infrastructure — A fresh SQLite file database per test, one session
per request (so concurrent requests behave like separate connections),
and in-memory fakes for the mailer and storage collaborators.
"""

import os

# 설정은 hrms import 전에 고정 (Settings must be fixed before hrms is imported)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SMTP_USER"] = ""
os.environ["AXIOM_API_TOKEN"] = ""
os.environ["ENVIRONMENT"] = "development"

from collections.abc import AsyncGenerator  # noqa: E402
from http.cookies import SimpleCookie  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient, Response  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from hrms.database import Base, build_engine, get_db  # noqa: E402
from hrms.main import app  # noqa: E402
from hrms.models import *  # noqa: F401,F403,E402 — register all models with metadata
from hrms.models.enums import UserRole  # noqa: E402
from hrms.models.leave import LeaveType  # noqa: E402
from hrms.models.organization import Organization  # noqa: E402
from hrms.models.user import EmployeeProfile, User  # noqa: E402
from hrms.repositories.organization_repository import organization_repository  # noqa: E402
from hrms.services.organization_service import organization_service  # noqa: E402
from hrms.services.storage_service import get_storage  # noqa: E402
from hrms.utils.email import get_mailer  # noqa: E402
from hrms.utils.jwt import create_access_token  # noqa: E402
from hrms.utils.password import hash_password  # noqa: E402

PASSWORD = "password123"


# ---------------------------------------------------------------------------
# 가짜 협력자 — Fake collaborators
# ---------------------------------------------------------------------------
class FakeMailer:
    """발송 대신 기록 (Records messages instead of sending)."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})

    def to(self, address: str) -> list[dict[str, str]]:
        return [m for m in self.sent if m["to"] == address]


class FakeStorage:
    """메모리 저장소 (In-memory object store)."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def upload(self, data: bytes, filename: str, content_type: str, folder: str) -> tuple[str, str]:
        key = f"{folder}/{len(self.objects) + len(self.deleted)}-{filename}"
        self.objects[key] = data
        return key, f"https://files.test/{key}"

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)


# ---------------------------------------------------------------------------
# 엔진, 세션, 클라이언트 — Engine, sessions and client
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트마다 새 SQLite 파일 DB (Fresh SQLite file database per test)."""
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """픽스처와 검증용 세션 — 데이터는 커밋해야 요청에서 보임.

    Session for fixtures and assertions. Fixture data is committed so
    request sessions can see it.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest_asyncio.fixture
async def client(session_factory, mailer, storage) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — 요청마다 새 세션.

    Test client; every request gets its own session.
    """
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성 — Data fixtures
# ---------------------------------------------------------------------------
async def create_user(
    db: AsyncSession,
    org: Organization,
    email: str,
    role: UserRole = UserRole.EMPLOYEE,
    name: str = "Test User",
    is_active: bool = True,
) -> User:
    """사용자와 프로필을 생성하고 커밋합니다 (Create a user with a profile and commit)."""
    user = User(
        organization_id=org.id,
        name=name,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role.value,
        is_verified=True,
        is_active=is_active,
    )
    db.add(user)
    await db.flush()
    employee_id = await organization_repository.next_employee_id(db, org.id)
    db.add(EmployeeProfile(user_id=user.id, organization_id=org.id, employee_id=employee_id, full_name=name))
    await db.commit()
    return user


@pytest_asyncio.fixture
async def org(db: AsyncSession) -> Organization:
    """기본 정책으로 생성된 조직 (Organization with default policies and leave types)."""
    o = await organization_service.bootstrap(db, "Acme Corp")
    await db.commit()
    return o


@pytest_asyncio.fixture
async def other_org(db: AsyncSession) -> Organization:
    o = await organization_service.bootstrap(db, "Other Corp")
    await db.commit()
    return o


@pytest_asyncio.fixture
async def super_admin(db: AsyncSession, org) -> User:
    return await create_user(db, org, "owner@acme.com", UserRole.SUPER_ADMIN, "Olivia Owner")


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession, org) -> User:
    return await create_user(db, org, "admin@acme.com", UserRole.ADMIN, "Adam Admin")


@pytest_asyncio.fixture
async def employee(db: AsyncSession, org) -> User:
    return await create_user(db, org, "emp@acme.com", UserRole.EMPLOYEE, "Eve Employee")


@pytest_asyncio.fixture
async def outsider(db: AsyncSession, other_org) -> User:
    return await create_user(db, other_org, "admin@x.com", UserRole.ADMIN, "Xavier Outsider")


@pytest_asyncio.fixture
async def leave_types(db: AsyncSession, org) -> dict[str, LeaveType]:
    """조직의 휴가 유형, 이름별 (Leave types keyed by name)."""
    result = await db.execute(select(LeaveType).where(LeaveType.organization_id == org.id))
    return {lt.name: lt for lt in result.scalars().all()}


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(user.id),
        "org": str(user.organization_id),
        "role": user.role,
    })


def auth_header(user_or_token: Any) -> dict[str, str]:
    token = user_or_token if isinstance(user_or_token, str) else make_token(user_or_token)
    return {"Authorization": f"Bearer {token}"}


def set_cookie(res: Response, name: str) -> str | None:
    """Set-Cookie 헤더에서 값 추출 (Read a cookie value from Set-Cookie headers)."""
    for header in res.headers.get_list("set-cookie"):
        cookie = SimpleCookie()
        cookie.load(header)
        if name in cookie:
            return cookie[name].value
    return None
