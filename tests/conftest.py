#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Test fixtures
=============
Each test gets its own in-memory SQLite database (one connection shared
through StaticPool), its own asset directory, a stubbed resolver and a mock
HTTP transport for remote assets.  Requests and test helpers use separate
sessions on that single connection, so helpers commit what they insert.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import socket
import tempfile
from dataclasses import dataclass, field
from typing import AsyncGenerator, Awaitable, Callable, Iterator

import httpx
import pytest
import pytest_asyncio

from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# ── Env vars must be set before importing app modules ────────────────────────
os.environ.setdefault("DATABASE_URL",  "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT",   "testing")
os.environ.setdefault("DATA_DIR",      tempfile.mkdtemp())
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from app.core.config import get_settings
from app.core.database import Base, build_engine, get_db
from app.core.security import create_session
from app.main import create_app
from app.services import uploads, validation
from app.services.logins import create_login
from tests.samples import DNS


# ── Per-test asset directory ──────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "data_dir", tmp_path)
    return tmp_path


# ── Stub resolver ─────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def fake_dns(monkeypatch):
    table = {host: list(addresses) for host, addresses in DNS.items()}

    async def _resolve(hostname: str) -> list[str]:
        try:
            return table[hostname.lower()]
        except KeyError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(validation, "resolve_host", _resolve)
    return table


# ── Remote asset server ───────────────────────────────────────────────────────

@dataclass
class RemoteServer:
    """URL -> canned response, served through httpx.MockTransport."""

    routes: dict[str, tuple[int, bytes, dict]] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    def add(self, url: str, content: bytes = b"", status: int = 200, headers: dict | None = None):
        self.routes[url] = (status, content, headers or {})

    def redirect(self, url: str, location: str):
        self.routes[url] = (302, b"", {"Location": location})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requested.append(str(request.url))
        status, content, headers = self.routes.get(str(request.url), (404, b"not here", {}))
        return httpx.Response(status, content=content, headers=headers)


@pytest.fixture(autouse=True)
def remote(monkeypatch) -> RemoteServer:
    server = RemoteServer()

    def _client() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(server.handler),
            follow_redirects=True,
            event_hooks={"request": [uploads._guard_request]},
        )

    monkeypatch.setattr(uploads, "_make_client", _client)
    return server


# ── One fresh database per test ───────────────────────────────────────────────
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def statements(engine) -> Iterator[list[str]]:
    """SQL sent to the test database while the fixture is active, upper-cased."""
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement.upper())

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def db(factory) -> AsyncGenerator[AsyncSession, None]:
    async with factory() as session:
        yield session


# ── Application with get_db bound to the test database ────────────────────────
@pytest.fixture
def app(factory):
    application = create_app()

    async def _override_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = _override_db
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client; does not follow redirects."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


# ── Logged-in clients ─────────────────────────────────────────────────────────

@dataclass
class Account:
    id: str
    username: str
    password: str
    session_id: str


async def make_account(
    db: AsyncSession, username: str, is_admin: bool = False, password: str = "Secret-Pass-123"
) -> Account:
    login = await create_login(db, username, password, is_admin)
    session_id, _expires = await create_session(db, login.user_id)
    await db.commit()
    return Account(login.user_id, username, password, session_id)


LoginClient = Callable[..., Awaitable[tuple[AsyncClient, Account]]]


@pytest_asyncio.fixture
async def login_client(app, db) -> AsyncGenerator[LoginClient, None]:
    """Factory: ``client, account = await login_client("name", is_admin=True)``."""
    opened: list[AsyncClient] = []

    async def _make(username: str, is_admin: bool = False) -> tuple[AsyncClient, Account]:
        account = await make_account(db, username, is_admin)
        c = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        c.cookies.set(get_settings().session_cookie_name, account.session_id)
        opened.append(c)
        return c, account

    yield _make
    for c in opened:
        await c.aclose()


@pytest_asyncio.fixture
async def admin(login_client) -> AsyncClient:
    c, _account = await login_client("admin", is_admin=True)
    return c


@pytest_asyncio.fixture
async def user(login_client) -> AsyncClient:
    c, _account = await login_client("user", is_admin=False)
    return c


# -----------------------------------------------------------------------------
