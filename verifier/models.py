"""
Core data model for the verification pipeline.

All records are frozen: a new WizardState is produced by every transition,
and StageOutcome validity is always derived from its facts, never stored.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(str, Enum):
    """Rule-bearing stages of the pipeline."""
    IDENTITY = "identity"
    KILL_COUNT = "kill_count"
    PROFILE = "profile"


class WizardStep(str, Enum):
    IDENTITY = "identity"
    KILL_COUNT_EVIDENCE = "kill_count_evidence"
    PROFILE_EVIDENCE = "profile_evidence"
    RESULT = "result"


# Evidence stages and the wizard step that collects them
EVIDENCE_STEPS = {
    Stage.KILL_COUNT: WizardStep.KILL_COUNT_EVIDENCE,
    Stage.PROFILE: WizardStep.PROFILE_EVIDENCE,
}


@dataclass(frozen=True)
class EvidenceImage:
    """Opaque image blob as handed over by the ingestion adapter."""
    data: bytes = field(repr=False)
    mime_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)

    def describe(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "mime_type": self.mime_type,
            "size": self.size,
        }


@dataclass(frozen=True)
class IdentityOutcome:
    claimed_identity: str

    @property
    def valid(self) -> bool:
        return len(self.claimed_identity.strip()) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid}


@dataclass(frozen=True)
class KillCountOutcome:
    kill_count: int
    name_found: bool
    min_kill_count: int

    @property
    def valid(self) -> bool:
        return self.kill_count >= self.min_kill_count and self.name_found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "kill_count": self.kill_count,
            "name_found": self.name_found,
        }


@dataclass(frozen=True)
class ProfileOutcome:
    name_match: bool

    @property
    def valid(self) -> bool:
        return self.name_match

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "name_match": self.name_match}


@dataclass(frozen=True)
class Verdict:
    """Aggregate result of one submitted verification attempt."""
    claimed_identity: str
    identity: IdentityOutcome
    kill_count: KillCountOutcome
    profile: ProfileOutcome
    reasons: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def overall_valid(self) -> bool:
        return self.identity.valid and self.kill_count.valid and self.profile.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimed_identity": self.claimed_identity,
            "overall_valid": self.overall_valid,
            "stages": {
                Stage.IDENTITY.value: self.identity.to_dict(),
                Stage.KILL_COUNT.value: self.kill_count.to_dict(),
                Stage.PROFILE.value: self.profile.to_dict(),
            },
            "reasons": list(self.reasons),
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }


@dataclass(frozen=True)
class WizardState:
    """
    Everything one verification attempt owns.

    `attempt` is bumped on every reset so a submission that finishes after
    a reset can tell its result is stale.
    """
    step: WizardStep = WizardStep.IDENTITY
    claimed_identity: str = ""
    kill_count_image: Optional[EvidenceImage] = None
    profile_image: Optional[EvidenceImage] = None
    verdict: Optional[Verdict] = None
    in_flight: bool = False
    attempt: int = 0

    def image_for(self, stage: Stage) -> Optional[EvidenceImage]:
        if stage == Stage.KILL_COUNT:
            return self.kill_count_image
        if stage == Stage.PROFILE:
            return self.profile_image
        raise ValueError(f"Stage {stage.value} carries no evidence image")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "claimed_identity": self.claimed_identity,
            "kill_count_image": self.kill_count_image.describe() if self.kill_count_image else None,
            "profile_image": self.profile_image.describe() if self.profile_image else None,
            "verdict": self.verdict.to_dict() if self.verdict else None,
            "in_flight": self.in_flight,
        }
