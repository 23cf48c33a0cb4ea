class ChallengeGenerationError(Exception):
    """Base class for challenge generation errors."""


class GenerationFailure(ChallengeGenerationError):
    """The generation service errored, timed out, or returned unusable content."""


class PersistenceFailure(ChallengeGenerationError):
    """An accepted challenge could not be stored."""
