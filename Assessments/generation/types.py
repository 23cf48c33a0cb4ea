from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

DIFFICULTIES = ("beginner", "intermediate", "advanced", "expert")
CHALLENGE_TYPES = ("scenario", "analytical", "technical", "case_study", "problem_solving")

ESTIMATED_MINUTES_BY_DIFFICULTY = {
    "beginner": 20,
    "intermediate": 30,
    "advanced": 45,
    "expert": 60,
}
DEFAULT_EVALUATION_CRITERIA = ["accuracy", "methodology", "reasoning", "completeness"]


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable input to one batch run."""
    topic_skills: Tuple[str, ...]
    difficulty: str
    challenge_type: str
    desired_count: int = 1
    job_title: str = ""
    job_description: str = ""
    job_post_id: str = ""

    def __post_init__(self):
        skills: List[str] = []
        for s in self.topic_skills or ():
            name = (s or "").strip()
            if name and name not in skills:
                skills.append(name)
        if not skills:
            raise ValueError("At least one skill is required")
        object.__setattr__(self, "topic_skills", tuple(skills))

        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {self.difficulty!r}")
        if self.challenge_type not in CHALLENGE_TYPES:
            raise ValueError(f"Unknown challenge type: {self.challenge_type!r}")
        if int(self.desired_count) < 1:
            raise ValueError("desired_count must be at least 1")

    @property
    def is_job_specific(self) -> bool:
        return bool(self.job_title or self.job_description)


@dataclass(frozen=True)
class CandidateItem:
    title: str
    description: str
    correct_answer: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AcceptedItem:
    item: CandidateItem
    fingerprint: str
    slot: int
    accepted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ProgressEvent:
    slot: int
    completed: int
    total: int
    produced: int
    duplicates_rejected: int
    generation_failures: int


@dataclass
class BatchResult:
    """Outcome of one batch: accepted items in slot order plus counters."""
    requested: int
    accepted: List[AcceptedItem] = field(default_factory=list)
    duplicates_rejected: int = 0
    generation_failures: int = 0
    skipped_slots: int = 0
    persisted_ids: Dict[int, Any] = field(default_factory=dict)
    persistence_errors: Dict[int, str] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def produced(self) -> int:
        return len(self.accepted)

    @property
    def persisted(self) -> int:
        return len(self.persisted_ids)

    @property
    def persistence_failures(self) -> int:
        return len(self.persistence_errors)

    def counters(self) -> Dict[str, Any]:
        return {
            "requested": self.requested,
            "produced": self.produced,
            "duplicates_rejected": self.duplicates_rejected,
            "generation_failures": self.generation_failures,
            "skipped_slots": self.skipped_slots,
            "persisted": self.persisted,
            "persistence_failures": self.persistence_failures,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class GenerationPolicy:
    max_attempts_per_item: int = 3
    base_temperature: float = 0.8
    temperature_step: float = 0.1
    max_tokens: int = 1500
    timeout_seconds: float = 30.0
    exclusion_hint_limit: int = 20
    max_workers: int = 1

    def temperature_for(self, attempt: int) -> float:
        return round(self.base_temperature + attempt * self.temperature_step, 4)

    @classmethod
    def from_settings(cls, conf: Optional[Mapping[str, Any]] = None) -> "GenerationPolicy":
        conf = conf or {}
        defaults = cls()
        return cls(
            max_attempts_per_item=max(1, int(conf.get("MAX_ATTEMPTS_PER_ITEM", defaults.max_attempts_per_item))),
            base_temperature=float(conf.get("BASE_TEMPERATURE", defaults.base_temperature)),
            temperature_step=float(conf.get("TEMPERATURE_STEP", defaults.temperature_step)),
            max_tokens=int(conf.get("MAX_TOKENS", defaults.max_tokens)),
            timeout_seconds=float(conf.get("TIMEOUT_SECONDS", defaults.timeout_seconds)),
            exclusion_hint_limit=int(conf.get("EXCLUSION_HINT_LIMIT", defaults.exclusion_hint_limit)),
            max_workers=max(1, int(conf.get("MAX_WORKERS", defaults.max_workers))),
        )
