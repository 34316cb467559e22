"""Fixtures for HTTP board API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

import boardsync.dashboard as dash_module
from boardsync.auth import AuthContext, User
from boardsync.dashboard import create_app
from boardsync.session import BoardSession
from tests.conftest import FakeRemote, ManualClock


@pytest.fixture
async def client(session: BoardSession) -> AsyncIterator[AsyncClient]:
    """Test client backed by the loaded admin session."""
    dash_module._session = session
    app = create_app(start_polling=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._session = None


@pytest.fixture
async def viewer_client(remote: FakeRemote, clock: ManualClock) -> AsyncIterator[AsyncClient]:
    """Test client whose session belongs to a contributor (view only)."""
    viewer = BoardSession(remote, AuthContext(User(name="Bob", role="contributor")), clock=clock.now, sleep=clock.sleep)
    await viewer.refresh()
    dash_module._session = viewer
    transport = ASGITransport(app=create_app(start_polling=False))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._session = None
    await viewer.aclose()
