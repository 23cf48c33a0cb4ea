# Assessments/agents/challenge_agent.py
import logging
import threading
from typing import Any, Dict, Optional

from django.conf import settings

from Assessments.agents.challenge_prompts import CHALLENGE_GENERATION_SYSTEM
from Assessments.generation.client import GenerationClient
from Assessments.generation.errors import GenerationFailure
from Assessments.generation.gateway import PersistenceGateway
from Assessments.generation.orchestrator import ProgressCallback, UniqueGenerationOrchestrator
from Assessments.generation.seen import SeenFingerprintSet
from Assessments.generation.types import BatchResult, CandidateItem, GenerationPolicy, GenerationRequest
from Assessments.persistence import DjangoPersistenceGateway
from Assessments.utils import generate_response_with_groq, generate_response_with_openai

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "correct_answer")
METADATA_FIELDS = ("difficulty", "skills", "challenge_type", "estimated_time_minutes", "evaluation_criteria")

PROVIDERS = {
    "groq": generate_response_with_groq,
    "openai": generate_response_with_openai,
}


def parse_candidate(data: Dict[str, Any]) -> CandidateItem:
    """
    Validate a parsed model reply and turn it into a CandidateItem.
    Raises GenerationFailure when a required field is missing or blank.
    """
    # Sometimes wrapped like {"challenge": {...}} or {"data": {...}}
    for key in ("content", "data", "result", "challenge"):
        if isinstance(data, dict) and key in data and isinstance(data[key], dict):
            data = data[key]

    if not isinstance(data, dict):
        raise GenerationFailure("Challenge payload is not an object")

    values = {}
    for name in REQUIRED_FIELDS:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            raise GenerationFailure(f"Challenge payload is missing '{name}'")
        values[name] = value.strip()

    metadata = {k: data[k] for k in METADATA_FIELDS if data.get(k) is not None}
    return CandidateItem(metadata=metadata, **values)


class LLMGenerationClient(GenerationClient):
    """GenerationClient backed by a chat-completion provider returning JSON."""

    def __init__(self, provider: str = "groq", model: Optional[str] = None,
                 max_tokens: int = 1500, timeout: float = 30.0):
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown generation provider: {provider!r}")
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout

    def generate(self, prompt: str, temperature: float) -> CandidateItem:
        messages = [
            {"role": "system", "content": CHALLENGE_GENERATION_SYSTEM},
            {"role": "user", "content": prompt},
        ]
        data, _usage = PROVIDERS[self.provider](
            messages,
            response_format="json",
            model=self.model,
            max_completion_tokens=self.max_tokens,
            temperature=temperature,
            timeout=self.timeout,
        )
        return parse_candidate(data)


def build_generation_client(policy: GenerationPolicy) -> LLMGenerationClient:
    conf = getattr(settings, "CHALLENGE_GENERATION", {})
    return LLMGenerationClient(
        provider=conf.get("PROVIDER") or "groq",
        model=conf.get("MODEL"),
        max_tokens=policy.max_tokens,
        timeout=policy.timeout_seconds,
    )


def ai_generate_unique_challenges(
    request: GenerationRequest,
    persist: bool = True,
    created_by_admin: bool = False,
    client: Optional[GenerationClient] = None,
    gateway: Optional[PersistenceGateway] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BatchResult:
    """
    Run one batch of unique challenge generation.

    The seen-fingerprint set is seeded from every stored challenge, so
    duplicates of earlier runs are rejected too. With persist=False the
    accepted challenges are only returned (preview for a job posting).
    """
    policy = GenerationPolicy.from_settings(getattr(settings, "CHALLENGE_GENERATION", {}))
    gateway = gateway or DjangoPersistenceGateway(created_by_admin=created_by_admin)
    seen = SeenFingerprintSet(gateway.list_existing_fingerprints())

    orchestrator = UniqueGenerationOrchestrator(
        client=client or build_generation_client(policy),
        seen=seen,
        gateway=gateway if persist else None,
        policy=policy,
    )
    logger.info(
        "Generating %s %s/%s challenge(s) for %s (%s known fingerprints)",
        request.desired_count, request.difficulty, request.challenge_type,
        ", ".join(request.topic_skills), len(seen),
    )
    return orchestrator.run(request, on_progress=on_progress, cancel_event=cancel_event)
