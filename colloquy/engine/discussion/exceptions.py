"""Errors raised by the round orchestrator."""


class OrchestrationError(Exception):
    """Base class for orchestration failures."""


class ModelNotConfiguredError(OrchestrationError):
    """The acting model identifier has no entry in the configured models."""

    def __init__(self, model_id: str, role: str) -> None:
        self.model_id = model_id
        self.role = role
        super().__init__(f"{role.capitalize()} model '{model_id}' is not configured")


class RoundAlreadyExecutingError(OrchestrationError):
    """A round of the same discussion is still in flight."""

    def __init__(self, discussion_id: int, current_round: int) -> None:
        self.discussion_id = discussion_id
        self.current_round = current_round
        super().__init__(
            f"Discussion {discussion_id} is already executing round {current_round}; "
            "wait for it to finish"
        )


class DiscussionNotFoundError(OrchestrationError):
    def __init__(self, discussion_id: int) -> None:
        self.discussion_id = discussion_id
        super().__init__(f"Discussion {discussion_id} not found")
