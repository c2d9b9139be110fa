"""
Shared fixtures: the app runs against in-memory SQLite, the in-process cache
and the mock LLM provider, with rate limits switched off.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["LLM_PROVIDER"] = "mock"
os.environ["LLM_ALLOW_MOCK"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("GROQ_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from ghostframe.main import app
from ghostframe.services.cache import cache

SAMPLE_CONTENT = (
    "Photosynthesis is the process by which green plants convert light energy into chemical energy. "
    "Chlorophyll is the pigment that absorbs sunlight inside the chloroplasts of plant cells. "
    "The light reactions are the first stage and they produce oxygen as a by-product. "
    "The Calvin cycle is defined as the set of reactions that fix carbon dioxide into sugar. "
    "Glucose is important because it stores energy that the plant uses for growth and repair."
)


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear_pattern("*")
    yield


@pytest.fixture
def sample_content():
    return SAMPLE_CONTENT
