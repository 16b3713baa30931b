"""
Pytest configuration and fixtures for the quiz platform tests.
"""
import sys
import os
import pytest
import pytest_asyncio
import httpx

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings, ClientSettings
from core.exceptions import RequestFailedError
from api.main import create_app
from db.session import init_models

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


class FakeApi:
    """In-memory stand-in for QuizApiClient, counting calls per endpoint."""

    def __init__(self, questions=None, last_updated=None):
        self.questions = list(questions or [])
        self.metadata = {} if last_updated is None else {"metaKey": "questions", "lastUpdated": last_updated}
        self.settings = {}
        self.participants = {}
        self.calls = {}
        self.fail = set()
        self.update_gate = None

    def _record(self, name):
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.fail:
            raise RequestFailedError(f"/{name}", 4)

    def count(self, name):
        return self.calls.get(name, 0)

    async def get_metadata(self, key):
        self._record("get_metadata")
        return dict(self.metadata)

    async def get_questions(self):
        self._record("get_questions")
        return [dict(q) for q in self.questions]

    async def get_settings(self, key):
        self._record("get_settings")
        return dict(self.settings)

    async def create_participant(self, data):
        self._record("create_participant")
        participant_id = f"p-{len(self.participants) + 1}"
        self.participants[participant_id] = dict(data, id=participant_id)
        return {"id": participant_id}

    async def update_participant(self, participant_id, data):
        self._record("update_participant")
        if self.update_gate is not None:
            await self.update_gate.wait()
        self.participants[participant_id].update(data)
        return {"success": True}


@pytest.fixture
def sample_questions():
    """Mixed questions across sections, raw orders deliberately sparse"""
    return [
        {
            "id": "q-py-syntax",
            "type": "syntax",
            "section": "Python",
            "title": "Fix the loop",
            "description": "Add the missing colon.",
            "language": "python",
            "buggyCode": "for i in range(3)\n    print(i)",
            "correctCode": "for i in range(3):\n    print(i)",
            "points": 10,
            "order": 5,
        },
        {
            "id": "q-common-mcq",
            "type": "mcq",
            "section": "Common",
            "title": "Pick the operator",
            "description": "Which operator squares x?",
            "language": "python",
            "codeSnippet": "y = _______",
            "options": ["x * 2", "x ** 2", "x ^ 2"],
            "correctOptionIndex": 1,
            "points": 5,
            "order": 1,
        },
        {
            "id": "q-c-case",
            "type": "casestudy",
            "section": "C",
            "title": "Name the protocol",
            "description": "Transport layer, reliable delivery.",
            "scenario": "Three-way handshake...",
            "acceptedAnswers": ["tcp", "tcp/ip"],
            "points": 20,
            "order": 3,
        },
        {
            "id": "q-py-case",
            "type": "casestudy",
            "section": "Python",
            "title": "Name the pattern",
            "description": "One instance only.",
            "scenario": "A single shared connection...",
            "acceptedAnswers": ["singleton"],
            "points": 15,
            "order": 9,
        },
    ]


@pytest.fixture
def make_api():
    return FakeApi


@pytest.fixture
def fake_api(sample_questions):
    return FakeApi(questions=sample_questions, last_updated=1_000)


@pytest.fixture
def client_settings():
    return ClientSettings(API_URL="http://test", ADMIN_PASSWORD="letmein", RETRY_BACKOFF_SECONDS=0.0)


@pytest.fixture
def server_settings():
    return Settings(DATABASE_URL="sqlite+aiosqlite:///:memory:", ENV="test", LOG_LEVEL="WARNING")


@pytest_asyncio.fixture
async def app(server_settings):
    application = create_app(server_settings)
    await init_models(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def http(app):
    """HTTP client talking to the app in-process"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
