"""Shared test fixtures."""

from pathlib import Path

import pytest

from lodestone.app import AppState
from lodestone.client import ApiGateway
from tests.unit.fakes import BASE_URL, FakeService


@pytest.fixture
def service() -> FakeService:
    fake = FakeService()
    fake.add_user("alice", "pw", email="a@b.com")
    return fake


@pytest.fixture
def session_path(tmp_path: Path) -> str:
    return str(tmp_path / "session" / "session.json")


@pytest.fixture
def gateway(service: FakeService) -> ApiGateway:
    client = ApiGateway(base_url=BASE_URL, transport=service.transport(), http_log_path=None)
    yield client
    client.close()


@pytest.fixture
def app(service: FakeService, session_path: str) -> AppState:
    state = AppState.create(
        base_url=BASE_URL,
        session_path=session_path,
        transport=service.transport(),
        http_log_path=None,
    )
    yield state
    state.close()


@pytest.fixture
def signed_in_app(app: AppState, service: FakeService) -> AppState:
    app.session.login("alice", "pw")
    assert app.session.is_authenticated
    service.requests.clear()
    return app
