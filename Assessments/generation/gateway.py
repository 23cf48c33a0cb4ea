from abc import ABC, abstractmethod
from typing import Any, Iterable

from Assessments.generation.types import AcceptedItem, GenerationRequest


class PersistenceGateway(ABC):
    """Storage for accepted challenges and their fingerprints."""

    @abstractmethod
    def save(self, accepted: AcceptedItem, request: GenerationRequest) -> Any:
        """Store one accepted item and return its id. Raises PersistenceFailure."""
        pass

    @abstractmethod
    def list_existing_fingerprints(self) -> Iterable[str]:
        """Fingerprints of every stored challenge, oldest first."""
        pass

    def release(self) -> None:
        """Free per-thread resources after a pool worker finishes a slot."""
        pass
