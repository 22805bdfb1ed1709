import json

import httpx
import pytest
from fastapi.testclient import TestClient

from afya.core.clients import ProviderError
from afya.core.config import AppConfig, GeminiConfig, SupabaseConfig
from afya.gateway import create_app
from afya.layers.inference import GeminiClient
from afya.layers.offline import SymptomTable

SYMPTOMS = {
    "headache": {
        "description": "Pain in the head.",
        "causes": ["Stress", "Dehydration"],
        "remedies": ["Rest", "Drink water"],
    },
    "sore throat": {
        "description": "Scratchy throat.",
        "causes": ["Viral infection"],
        "remedies": ["Gargle with salt water"],
    },
}


class FakeStore:
    """In-memory stand-in for SupabaseStore."""

    def __init__(self):
        self.users = {}
        self.rows = []
        self.fail_insert = False
        self.fail_select = False

    async def sign_in(self, email, password):
        if self.users.get(email) != password:
            raise ProviderError("Invalid login credentials")
        return email

    async def sign_up(self, email, password):
        if email in self.users:
            raise ProviderError("User already registered")
        self.users[email] = password
        return email

    async def insert_history(self, entry):
        if self.fail_insert:
            raise ProviderError("insert failed")
        self.rows.append(entry.model_dump())

    async def list_history(self, email):
        if self.fail_select:
            raise ProviderError("relation \"history\" does not exist")
        rows = [r for r in self.rows if r["email"] == email]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)


def gemini_reply(text, status=200):
    return httpx.Response(status, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def config():
    return AppConfig(
        supabase=SupabaseConfig(url="https://example.supabase.co", key="service-key"),
        gemini=GeminiConfig(api_key="test-key"),
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def symptoms():
    return SymptomTable.from_mapping(SYMPTOMS)


@pytest.fixture
def gemini_calls():
    return []


@pytest.fixture
def gemini_handler():
    """Override per test to change what the fake Gemini endpoint returns."""
    def handler(request):
        return gemini_reply(json.dumps({
            "description": "Likely tension headache.",
            "causes": ["Stress", ""],
            "remedies": "Rest",
        }))
    return handler


@pytest.fixture
def gemini(config, gemini_handler, gemini_calls):
    def recording(request):
        gemini_calls.append(request)
        return gemini_handler(request)
    return GeminiClient(config.gemini, transport=httpx.MockTransport(recording))


@pytest.fixture
def client(config, store, symptoms, gemini):
    app = create_app(config=config, store=store, symptoms=symptoms, gemini=gemini)
    with TestClient(app) as c:
        yield c
