import httpx
import pytest
import pytest_asyncio
from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from therapy_site.api.deps import get_assessment_analyzer, get_email_service, get_whatsapp_service
from therapy_site.config.settings import Config, get_config
from therapy_site.infra.database import build_engine, get_db, get_session_factory, init_db
from therapy_site.infra.storage import ObjectStorage, get_storage
from therapy_site.main import app
from therapy_site.services.assessment_service import AssessmentAnalyzer
from therapy_site.services.auth_service import AuthService, get_auth_service
from therapy_site.services.email_service import EmailService
from therapy_site.services.whatsapp_service import WhatsAppService

ADMIN = {"name": "Volkan", "email": "admin@example.com", "password": "supersecret1"}


@pytest.fixture
def anyio_backend():
    return 'asyncio'


class OutboundRecorder:
    """Stands in for Resend, Twilio, Supabase Storage and the AI providers"""

    def __init__(self):
        self.requests = []
        self.fail_hosts = set()
        self.fail_status = 500
        self.replies = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.fail_hosts:
            return httpx.Response(self.fail_status, text="provider down")
        return httpx.Response(200, json=self.replies.get(request.url.host, {"id": "mock"}))

    def to(self, host: str):
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def test_config(tmp_path):
    return Config(
        auth={
            "encryption_secret": "test-encryption-secret",
            "session_secret": "test-session-secret",
            "password_rounds": 1000,
        },
        site={"site_url": "https://volkanozcihan.com", "public_dir": str(tmp_path / "public")},
        cron={"secret": "cron-secret"},
        email={"resend_api_key": "re_test_key"},
        whatsapp={
            "account_sid": "AC123",
            "auth_token": "twilio-token",
            "from_number": "+14155238886",
            "admin_number": "+905320000000",
        },
        storage={"url": "https://storage.example.com", "service_key": "service-key"},
    )


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so the threaded home loader gets its own connections
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def outbound():
    return OutboundRecorder()


@pytest_asyncio.fixture
async def provider_client(outbound):
    async with httpx.AsyncClient(transport=httpx.MockTransport(outbound.handler)) as client:
        yield client


@pytest.fixture
def auth(test_config):
    return AuthService(test_config)


@pytest.fixture
def storage(test_config, provider_client):
    return ObjectStorage(test_config.storage, client=provider_client)


@pytest_asyncio.fixture
async def client(session_factory, test_config, auth, storage, provider_client):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_email_service(session=Depends(get_db)):
        return EmailService(session, test_config, client=provider_client)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_config] = lambda: test_config
    app.dependency_overrides[get_auth_service] = lambda: auth
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_email_service] = override_email_service
    app.dependency_overrides[get_whatsapp_service] = lambda: WhatsAppService(
        test_config.whatsapp, client=provider_client
    )
    app.dependency_overrides[get_assessment_analyzer] = lambda: AssessmentAnalyzer(
        test_config.ai, client=provider_client
    )

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(client):
    """Client holding the session cookie of a freshly set up admin"""
    response = await client.post("/api/admin/setup", json=ADMIN)
    assert response.status_code == 200
    return client
