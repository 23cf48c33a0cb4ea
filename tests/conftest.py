"""
Root test configuration.

Test organization:
- unit/        Fast, isolated, generation client and gateway replaced by fakes
- integration/ Django ORM and REST API against the test database

Run specific levels:
    pytest tests/unit -v
    pytest tests/integration -v
    pytest tests -v
"""

import threading

import pytest

from Assessments.generation.client import GenerationClient
from Assessments.generation.errors import PersistenceFailure
from Assessments.generation.gateway import PersistenceGateway
from Assessments.generation.types import CandidateItem, GenerationRequest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated tests")
    config.addinivalue_line("markers", "integration: Component boundary tests")


class ScriptedClient(GenerationClient):
    """
    Returns scripted responses in order; the last one repeats.
    Exceptions in the script are raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self._lock = threading.Lock()

    def generate(self, prompt, temperature):
        with self._lock:
            self.calls.append((prompt, temperature))
            response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def temperatures(self):
        return [t for _, t in self.calls]


class RecordingGateway(PersistenceGateway):
    """In-memory gateway; fails for the titles listed in fail_titles."""

    def __init__(self, existing=(), fail_titles=()):
        self.existing = list(existing)
        self.fail_titles = set(fail_titles)
        self.saved = []
        self._lock = threading.Lock()

    def save(self, accepted, request):
        if accepted.item.title in self.fail_titles:
            raise PersistenceFailure(f"disk full while saving {accepted.item.title}")
        with self._lock:
            self.saved.append(accepted)
            return len(self.saved)

    def list_existing_fingerprints(self):
        return list(self.existing)


def make_item(title, description="D", correct_answer="A", **metadata):
    return CandidateItem(title=title, description=description, correct_answer=correct_answer, metadata=metadata)


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def scripted_client():
    return ScriptedClient


@pytest.fixture
def recording_gateway():
    return RecordingGateway


@pytest.fixture
def fraud_request():
    """Single intermediate scenario challenge on fraud detection."""
    return GenerationRequest(
        topic_skills=("Fraud Detection",),
        difficulty="intermediate",
        challenge_type="scenario",
        desired_count=1,
    )
