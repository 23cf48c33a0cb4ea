import hashlib
from typing import Optional

from Assessments.generation.types import CandidateItem

FINGERPRINT_LENGTH = 32

# ASCII unit separator, keeps ("ab", "c") and ("a", "bc") apart
FIELD_SEPARATOR = "\x1f"


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def fingerprint(title: Optional[str], description: Optional[str], correct_answer: Optional[str]) -> str:
    """
    Deterministic content fingerprint of a challenge.

    Each field is trimmed and lower-cased, the fields are joined in fixed
    order (title, description, correct_answer) with FIELD_SEPARATOR, and the
    SHA-256 hex digest is truncated to FINGERPRINT_LENGTH characters.
    """
    content = FIELD_SEPARATOR.join(
        _normalize(field) for field in (title, description, correct_answer)
    )
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def fingerprint_item(item: CandidateItem) -> str:
    return fingerprint(item.title, item.description, item.correct_answer)
