from abc import ABC, abstractmethod

from Assessments.generation.types import CandidateItem


class GenerationClient(ABC):
    """Boundary to an external text-generation service."""

    @abstractmethod
    def generate(self, prompt: str, temperature: float) -> CandidateItem:
        """
        Produce one candidate challenge for the prompt.

        Raises GenerationFailure when the service errors, times out, or the
        output is missing title, description or correct_answer.
        """
        pass
