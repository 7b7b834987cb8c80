"""
Error taxonomy for the scheduling engine.

Validation failures are raised at the boundary, before any transition logic
runs. Hosts (CLI, HTTP) decide how to surface them.
"""


class CadenceError(Exception):
    """Base class for all Cadence errors."""


class InvalidReviewError(CadenceError, ValueError):
    """A quality rating or card state failed validation."""


class ConfigurationError(CadenceError):
    """A SchedulingConfig is unusable. Indicates a broken deployment."""


class CardNotFoundError(CadenceError, LookupError):
    """The requested card does not exist in the repository."""

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class PersistenceConflictError(CadenceError):
    """
    The card changed between read and write.

    Retryable: the caller should re-read the card and recompute.
    """

    def __init__(self, card_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Card {card_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.card_id = card_id
        self.expected_version = expected_version
        self.actual_version = actual_version
