"""Ranking and board exception types."""


class NotFoundError(LookupError):
    """Raised when a dragged epic or drop target is not in the loaded sprint set."""

    def __init__(self, kind: str, item_id: str, detail: str | None = None):
        self.kind = kind
        self.item_id = item_id
        message = f"{kind.capitalize()} not found: {item_id}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class WriteFailureError(Exception):
    """Raised when one or more writes in a commit batch were rejected.

    Some writes in the batch may already have landed; callers re-read the
    store rather than trusting in-memory state.
    """

    USER_MESSAGE = "Failed to move epic. Please try again."

    def __init__(self, epic_ids: list[str], causes: list[BaseException] | None = None):
        self.epic_ids = epic_ids
        self.causes = causes or []
        super().__init__(f"{self.USER_MESSAGE} (failed writes for: {', '.join(epic_ids)})")


class InvalidDragTransitionError(Exception):
    """Raised when a drag gesture event arrives in the wrong phase."""

    def __init__(self, from_phase, to_phase):
        self.from_phase = from_phase
        self.to_phase = to_phase
        super().__init__(
            f"Invalid drag transition: {from_phase.value} \u2192 {to_phase.value}"
        )


class InvalidSprintLabelError(ValueError):
    """Raised when a sprint label cannot be built or parsed."""
