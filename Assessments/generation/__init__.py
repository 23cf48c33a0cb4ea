from Assessments.generation.client import GenerationClient
from Assessments.generation.errors import (
    ChallengeGenerationError,
    GenerationFailure,
    PersistenceFailure,
)
from Assessments.generation.fingerprint import fingerprint, fingerprint_item
from Assessments.generation.gateway import PersistenceGateway
from Assessments.generation.orchestrator import UniqueGenerationOrchestrator
from Assessments.generation.seen import SeenFingerprintSet
from Assessments.generation.types import (
    CHALLENGE_TYPES,
    DIFFICULTIES,
    AcceptedItem,
    BatchResult,
    CandidateItem,
    GenerationPolicy,
    GenerationRequest,
    ProgressEvent,
)

__all__ = [
    "AcceptedItem",
    "BatchResult",
    "CandidateItem",
    "CHALLENGE_TYPES",
    "ChallengeGenerationError",
    "DIFFICULTIES",
    "fingerprint",
    "fingerprint_item",
    "GenerationClient",
    "GenerationFailure",
    "GenerationPolicy",
    "GenerationRequest",
    "PersistenceFailure",
    "PersistenceGateway",
    "ProgressEvent",
    "SeenFingerprintSet",
    "UniqueGenerationOrchestrator",
]
