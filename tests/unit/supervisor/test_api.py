"""Unit tests for the control API router and application."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backendctl.exceptions import (
    AlreadyRunningError,
    DecodeError,
    NotRunningError,
    ServerError,
    SpawnError,
    StartupHealthCheckError,
    TerminationError,
    TransportError,
)
from backendctl.server import create_control_app
from backendctl.supervisor import (
    BackendFacade,
    ChatMessage,
    ServerStatus,
    StartResult,
    StopResult,
    ToolCall,
    create_control_router,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from backendctl.config import BackendConfig


class FakeFacade:
    """Facade double whose results and failures are set per test."""

    def __init__(self) -> None:
        self.error: Exception | None = None
        self.sent: list[str] = []
        self.reply = ChatMessage(content="Hi", tool_calls=None)

    def _maybe_raise(self) -> None:
        if self.error is not None:
            raise self.error

    async def start(self) -> StartResult:
        self._maybe_raise()
        return StartResult(pid=4242, message="Server started successfully (PID: 4242)")

    async def stop(self) -> StopResult:
        self._maybe_raise()
        return StopResult(message="Server stopped successfully")

    async def status(self) -> ServerStatus:
        return ServerStatus(running=False, port=38080, pid=None)

    async def send_message(self, text: str) -> ChatMessage:
        self.sent.append(text)
        self._maybe_raise()
        return self.reply


@pytest.fixture
def fake_facade() -> FakeFacade:
    return FakeFacade()


@pytest.fixture
def client(fake_facade: FakeFacade) -> TestClient:
    app = FastAPI()
    app.include_router(create_control_router(fake_facade))  # pyright: ignore[reportArgumentType]
    return TestClient(app)


class TestStartEndpoint:
    def test_success(self, client: TestClient) -> None:
        response = client.post("/backend/start")

        assert response.status_code == 200
        assert response.json() == {
            "pid": 4242,
            "message": "Server started successfully (PID: 4242)",
        }

    def test_already_running_is_conflict(
        self, client: TestClient, fake_facade: FakeFacade
    ) -> None:
        fake_facade.error = AlreadyRunningError("Server is already running", pid=1)

        response = client.post("/backend/start")

        assert response.status_code == 409
        assert response.json() == {"detail": "Server is already running"}

    @pytest.mark.parametrize(
        "error",
        [
            SpawnError("Failed to start server: No such file or directory"),
            StartupHealthCheckError("Server failed to start properly"),
        ],
    )
    def test_other_failures_are_server_errors(
        self, client: TestClient, fake_facade: FakeFacade, error: Exception
    ) -> None:
        fake_facade.error = error

        response = client.post("/backend/start")

        assert response.status_code == 500
        assert response.json()["detail"] == str(error)


class TestStopEndpoint:
    def test_success(self, client: TestClient) -> None:
        response = client.post("/backend/stop")

        assert response.status_code == 200
        assert response.json() == {"message": "Server stopped successfully"}

    def test_not_running_is_conflict(
        self, client: TestClient, fake_facade: FakeFacade
    ) -> None:
        fake_facade.error = NotRunningError("Server is not running")

        response = client.post("/backend/stop")

        assert response.status_code == 409
        assert response.json() == {"detail": "Server is not running"}

    def test_termination_failure_is_server_error(
        self, client: TestClient, fake_facade: FakeFacade
    ) -> None:
        fake_facade.error = TerminationError("Failed to stop server: denied")

        response = client.post("/backend/stop")

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to stop server: denied"}


class TestStatusEndpoint:
    def test_reports_status(self, client: TestClient) -> None:
        response = client.get("/backend/status")

        assert response.status_code == 200
        assert response.json() == {"running": False, "port": 38080, "pid": None}


class TestMessagesEndpoint:
    def test_relays_text(self, client: TestClient, fake_facade: FakeFacade) -> None:
        fake_facade.reply = ChatMessage(
            content="ok", tool_calls=(ToolCall(name="a", arguments={"x": 1}),)
        )

        response = client.post("/backend/messages", json={"text": "hello"})

        assert response.status_code == 200
        assert response.json() == {
            "content": "ok",
            "tool_calls": [{"name": "a", "arguments": {"x": 1}}],
        }
        assert fake_facade.sent == ["hello"]

    def test_reply_without_tool_calls(self, client: TestClient) -> None:
        response = client.post("/backend/messages", json={"text": "hello"})

        assert response.json() == {"content": "Hi", "tool_calls": None}

    @pytest.mark.parametrize(
        "error",
        [
            TransportError("Failed to send request: Connection refused"),
            ServerError("Server returned error: 500 Internal Server Error", status_code=500),
            DecodeError("Failed to parse response: Expecting value"),
        ],
    )
    def test_relay_failures_are_bad_gateway(
        self, client: TestClient, fake_facade: FakeFacade, error: Exception
    ) -> None:
        fake_facade.error = error

        response = client.post("/backend/messages", json={"text": "hello"})

        assert response.status_code == 502
        assert response.json() == {"detail": str(error)}

    def test_missing_text_is_rejected(self, client: TestClient) -> None:
        response = client.post("/backend/messages", json={})

        assert response.status_code == 422


class TestControlApp:
    @pytest.fixture
    def facade(
        self, backend_config: BackendConfig, test_logger: FilteringBoundLogger
    ) -> BackendFacade:
        transport = httpx.MockTransport(lambda _request: httpx.Response(200, json={}))
        return BackendFacade(
            backend_config,
            client=httpx.AsyncClient(transport=transport),
            logger=test_logger,
        )

    def test_health_endpoint(
        self, backend_config: BackendConfig, facade: BackendFacade
    ) -> None:
        app = create_control_app(backend_config, facade=facade)

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.json() == {"status": "healthy"}

    def test_lifecycle_through_http(
        self, backend_config: BackendConfig, facade: BackendFacade
    ) -> None:
        app = create_control_app(backend_config, facade=facade)

        with TestClient(app) as client:
            started = client.post("/backend/start")
            status = client.get("/backend/status")
            stopped = client.post("/backend/stop")

        assert started.status_code == 200
        assert status.json() == {
            "running": True,
            "port": 38080,
            "pid": started.json()["pid"],
        }
        assert stopped.json() == {"message": "Server stopped successfully"}

    def test_autostart_and_shutdown_stops_backend(
        self, backend_config: BackendConfig, facade: BackendFacade
    ) -> None:
        app = create_control_app(backend_config, facade=facade, autostart=True)

        with TestClient(app) as client:
            status = client.get("/backend/status").json()
            assert status["running"] is True
            assert status["pid"] is not None

        assert not facade.supervisor.is_held()

    def test_docs_are_disabled(
        self, backend_config: BackendConfig, facade: BackendFacade
    ) -> None:
        app = create_control_app(backend_config, facade=facade)

        with TestClient(app) as client:
            assert client.get("/docs").status_code == 404
