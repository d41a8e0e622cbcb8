import importlib
import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from relay.core.config import get_settings
from relay.services import agent as agent_service
from relay.services import storage as storage_service


class FakeAgentClient:
    """Stands in for the bedrock-agent-runtime client."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.chunks: list[bytes] = []
        self.extra_events: list[dict] = []
        self.error: Exception | None = None
        self.stream_error: Exception | None = None

    def invoke_agent(self, **params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return {
            "completion": self._events(),
            "contentType": "application/json",
            "sessionId": params["sessionId"],
        }

    def _events(self):
        yield from self.extra_events
        for chunk in self.chunks:
            yield {"chunk": {"bytes": chunk}}
        if self.stream_error is not None:
            raise self.stream_error


class FailingS3Client:
    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    def generate_presigned_url(self, *args, **kwargs):
        self.calls += 1
        raise self.error


@pytest.fixture(scope="session", autouse=True)
def configure_environment(tmp_path_factory):
    static_dir = tmp_path_factory.mktemp("public")
    (static_dir / "index.html").write_text("<html><body>relay</body></html>", encoding="utf-8")

    os.environ["ENV"] = "test"
    os.environ["AWS_REGION"] = "ap-southeast-2"
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_EC2_METADATA_DISABLED"] = "true"
    os.environ["UPLOAD_BUCKET"] = "test-bucket"
    os.environ["UPLOAD_PREFIX"] = "chat_uploads/"
    os.environ["BEDROCK_AGENT_ID"] = "AGENT12345"
    os.environ["BEDROCK_AGENT_ALIAS"] = "ALIAS12345"
    os.environ["DEMO_IDENTITY"] = "demo-user"
    os.environ["FORCE_DEMO_IDENTITY"] = "true"
    os.environ["STATIC_DIR"] = str(static_dir)
    get_settings.cache_clear()
    storage_service.reset_storage_service()
    agent_service.reset_agent_service()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def app_instance(configure_environment):
    from relay import main as app_module

    importlib.reload(app_module)
    return app_module.app


@pytest.fixture
def agent_client():
    client = FakeAgentClient()
    agent_service._agent_service = agent_service.AgentService(client=client)
    yield client
    agent_service.reset_agent_service()


@pytest.fixture
def use_storage():
    """Swap the storage singleton for the duration of a test."""

    def _install(service):
        storage_service._storage_service = service
        return service

    yield _install
    storage_service.reset_storage_service()


@pytest.fixture
def env_override(monkeypatch):
    """Change environment settings for one test; the cached settings follow."""

    def _apply(**values):
        for name, value in values.items():
            monkeypatch.setenv(name, value)
        get_settings.cache_clear()

    yield _apply
    monkeypatch.undo()
    get_settings.cache_clear()


@pytest.fixture
def failing_s3():
    return FailingS3Client


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
