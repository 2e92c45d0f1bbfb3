from enum import Enum
from typing import Optional


class IngestionFailure(Enum):
    NOT_AN_IMAGE = "not_an_image"
    NO_IMAGE_IN_CLIPBOARD = "no_image_in_clipboard"
    PERMISSION_DENIED = "permission_denied"


class IngestionError(Exception):
    """Raised when a user-supplied payload cannot become an EvidenceImage."""

    def __init__(self, reason: IngestionFailure, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        message = f"[{reason.value}]"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class TransitionRejected(Exception):
    """Raised when a wizard transition's guard does not hold."""

    def __init__(self, transition: str, reason: str):
        self.transition = transition
        self.reason = reason
        super().__init__(f"{transition} rejected: {reason}")


class SubmissionError(Exception):
    """Unexpected failure during the submit transition. The attempt may be retried."""
    pass


class ClipboardUnavailable(Exception):
    """The host environment refused or does not support clipboard access."""
    pass
