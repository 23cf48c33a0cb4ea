import logging
from typing import Any, Dict, Iterable, List, Optional

from django.db import DatabaseError, connections, transaction

from Assessments.generation.errors import PersistenceFailure
from Assessments.generation.gateway import PersistenceGateway
from Assessments.generation.types import (
    DEFAULT_EVALUATION_CRITERIA,
    ESTIMATED_MINUTES_BY_DIFFICULTY,
    AcceptedItem,
    GenerationRequest,
)
from .models import Challenge, ChallengeAnswerKey

logger = logging.getLogger(__name__)


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_list(value: Any, default: List[str]) -> List[str]:
    if isinstance(value, (list, tuple)):
        out = [str(v).strip() for v in value if str(v).strip()]
        return out or list(default)
    if isinstance(value, str) and value.strip():
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(default)


def challenge_fields_for(accepted: AcceptedItem, request: GenerationRequest) -> Dict[str, Any]:
    """
    Column values for a generated challenge. The request wins for difficulty
    and type; metadata from the model fills the rest, with defaults per difficulty.
    """
    meta = accepted.item.metadata or {}
    return {
        "title": accepted.item.title.strip()[:255],
        "description": accepted.item.description.strip(),
        "difficulty": request.difficulty,
        "challenge_type": request.challenge_type,
        "skills": _as_list(meta.get("skills"), list(request.topic_skills[:3])),
        "estimated_time_minutes": _coerce_int(
            meta.get("estimated_time_minutes"), ESTIMATED_MINUTES_BY_DIFFICULTY[request.difficulty]
        ),
        "evaluation_criteria": _as_list(meta.get("evaluation_criteria"), DEFAULT_EVALUATION_CRITERIA),
        "content_hash": accepted.fingerprint,
        "is_ai_generated": True,
        "job_post_id": request.job_post_id or "",
        "generated_for_job": request.job_title or "",
    }


def store_challenge(fields: Dict[str, Any], correct_answer: Optional[str], explanation: str = "") -> Challenge:
    """Create a challenge and, when there is a correct answer, its answer key, atomically."""
    try:
        with transaction.atomic():
            challenge = Challenge.objects.create(**fields)
            if correct_answer:
                ChallengeAnswerKey.objects.create(
                    challenge=challenge,
                    correct_answer=correct_answer,
                    explanation=explanation or correct_answer,
                    evaluation_rubric=fields.get("evaluation_criteria") or [],
                )
    except DatabaseError as e:
        raise PersistenceFailure(f"Could not save challenge '{fields.get('title', '')}': {e}") from e
    return challenge


class DjangoPersistenceGateway(PersistenceGateway):
    """Stores accepted challenges through the Django ORM."""

    def __init__(self, created_by_admin: bool = False):
        self.created_by_admin = created_by_admin

    def save(self, accepted: AcceptedItem, request: GenerationRequest) -> int:
        fields = challenge_fields_for(accepted, request)
        fields["created_by_admin"] = self.created_by_admin
        challenge = store_challenge(fields, accepted.item.correct_answer)
        logger.info("Saved generated challenge %s (%s)", challenge.id, accepted.fingerprint)
        return challenge.id

    def list_existing_fingerprints(self) -> Iterable[str]:
        return list(
            Challenge.objects.exclude(content_hash__isnull=True)
            .exclude(content_hash="")
            .order_by("id")
            .values_list("content_hash", flat=True)
        )

    def release(self) -> None:
        # pool threads each open their own connection
        connections.close_all()
