"""
Test configuration and fixtures.

The storage backend is a MagicMock standing in for the boto3 S3 client.
Client-side tests talk to a FakeBackend through httpx.MockTransport, which
plays both the authorization API and the presigned-URL storage endpoint.
"""
import os

# Set test environment before any imports
os.environ["R2_ENDPOINT"] = "https://test-account.r2.cloudflarestorage.com"
os.environ["R2_ACCESS_KEY"] = "test-access-key"
os.environ["R2_SECRET_KEY"] = "test-secret-key"
os.environ["R2_BUCKET"] = "test-bucket"
os.environ["ENVIRONMENT"] = "test"

import asyncio
import json
from typing import AsyncGenerator, List, Optional
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

from image_uploader.client.notifications import Notifier
from image_uploader.client.orchestrator import UploadOrchestrator
from image_uploader.client.transport import AuthorizationClient, StorageTransfer
from image_uploader.config import Settings
from image_uploader.storage.authorization import AuthorizationService
from image_uploader.storage.keys import generate_storage_key
from image_uploader.storage.r2_client import R2Client

PRESIGNED_URL = (
    "https://test-account.r2.cloudflarestorage.com/test-bucket/key"
    "?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Expires=3600&X-Amz-Signature=abc123"
)


# ============================================================================
# Server side
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    return Settings(
        r2_endpoint="https://test-account.r2.cloudflarestorage.com",
        r2_access_key="test-access-key",
        r2_secret_key="test-secret-key",
        r2_bucket="test-bucket",
        _env_file=None
    )


@pytest.fixture
def s3_stub() -> MagicMock:
    """Stub boto3 S3 client."""
    stub = MagicMock()
    stub.generate_presigned_url.return_value = PRESIGNED_URL
    stub.delete_object.return_value = {}
    return stub


@pytest.fixture
def r2_client(settings: Settings, s3_stub: MagicMock) -> R2Client:
    return R2Client(settings, client=s3_stub)


@pytest.fixture
def authorization_service(r2_client: R2Client) -> AuthorizationService:
    return AuthorizationService(r2_client)


@pytest.fixture
async def client(authorization_service: AuthorizationService) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    from image_uploader.main import app
    from image_uploader.api.upload_authorization import get_authorization_service

    app.dependency_overrides[get_authorization_service] = lambda: authorization_service
    app.state.authorization_service = authorization_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
    del app.state.authorization_service


# ============================================================================
# Client side
# ============================================================================

class RecordingNotifier(Notifier):
    """Notifier that keeps every message for assertions."""

    def __init__(self):
        self.successes: List[str] = []
        self.errors: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeBackend:
    """
    In-process stand-in for the authorization API and the storage bucket.

    Status attributes switch individual operations into failure, and the
    exception attributes make a handler fail at the network layer. Setting
    a gate makes the matching handler wait until the gate is opened.
    """

    def __init__(self):
        self.authorize_status = 200
        self.delete_status = 200
        self.storage_status = 200
        self.authorize_calls: List[dict] = []
        self.delete_calls: List[str] = []
        self.storage_calls: List[httpx.Request] = []
        self.stored = {}
        self.authorize_gate: Optional[asyncio.Event] = None
        self.storage_gate: Optional[asyncio.Event] = None
        self.delete_gate: Optional[asyncio.Event] = None
        self.authorize_exception: Optional[Exception] = None
        self.delete_exception: Optional[Exception] = None
        self.storage_exception: Optional[Exception] = None
        self.grant_body: Optional[dict] = None
        self.authorize_started = asyncio.Event()
        self.storage_started = asyncio.Event()

    async def api_handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)

        if request.method == "POST":
            self.authorize_calls.append(payload)
            self.authorize_started.set()
            if self.authorize_gate is not None:
                await self.authorize_gate.wait()
            if self.authorize_exception is not None:
                raise self.authorize_exception
            if self.authorize_status != 200:
                return httpx.Response(
                    self.authorize_status,
                    json={"error": "Failed to generate upload URL"}
                )
            if self.grant_body is not None:
                return httpx.Response(200, json=self.grant_body)
            key = generate_storage_key(payload["filename"])
            return httpx.Response(200, json={
                "authorizedUploadUrl": f"https://storage.test/test-bucket/{key}?X-Amz-Signature=abc",
                "storageKey": key,
            })

        self.delete_calls.append(payload["key"])
        if self.delete_gate is not None:
            await self.delete_gate.wait()
        if self.delete_exception is not None:
            raise self.delete_exception
        if self.delete_status != 200:
            return httpx.Response(self.delete_status, json={"error": "Failed to delete file."})
        self.stored.pop(payload["key"], None)
        return httpx.Response(200, json={"message": "File deleted successfully"})

    async def storage_handler(self, request: httpx.Request) -> httpx.Response:
        self.storage_calls.append(request)
        self.storage_started.set()
        if self.storage_gate is not None:
            await self.storage_gate.wait()
        if self.storage_exception is not None:
            raise self.storage_exception
        if self.storage_status < 300:
            self.stored[request.url.path.rsplit("/", 1)[-1]] = request.content
        return httpx.Response(self.storage_status)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def orchestrator(
    backend: FakeBackend,
    notifier: RecordingNotifier
) -> AsyncGenerator[UploadOrchestrator, None]:
    api_http = httpx.AsyncClient(
        transport=httpx.MockTransport(backend.api_handler),
        base_url="http://api.test/api"
    )
    storage_http = httpx.AsyncClient(transport=httpx.MockTransport(backend.storage_handler))

    orchestrator = UploadOrchestrator(
        AuthorizationClient(api_http),
        StorageTransfer(storage_http, chunk_size=256 * 1024),
        notifier=notifier
    )
    yield orchestrator

    # Open any gates so cancelled handlers can unwind
    for gate in (backend.authorize_gate, backend.storage_gate, backend.delete_gate):
        if gate is not None:
            gate.set()
    await orchestrator.close()
    await api_http.aclose()
    await storage_http.aclose()
