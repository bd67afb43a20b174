from __future__ import annotations


class AssessmentValidationError(ValueError):
    """Submission is malformed or incomplete. Surfaced to the caller as a 400."""


class RecommendationError(Exception):
    """Base class for generator failures that the orchestrator recovers from."""


class ModelUnavailable(RecommendationError):
    pass


class ModelInvocationError(RecommendationError):
    pass


class ModelOutputInvalid(RecommendationError):
    pass


class StorageError(Exception):
    """Base class for tier failures. Never reaches the HTTP caller."""

    def __init__(self, tier: str, message: str) -> None:
        super().__init__(f"[{tier}] {message}")
        self.tier = tier


class TierWriteError(StorageError):
    pass


class TierReadError(StorageError):
    pass
