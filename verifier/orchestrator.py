import logging
from typing import Any, Dict, Optional

from . import transitions
from .decision import DecisionEngine
from .errors import SubmissionError
from .extractor import TextExtractionService
from .ingestion import IngestionSource, acquire
from .models import EvidenceImage, Stage, Verdict, WizardState
from .rules import RuleEngine

logger = logging.getLogger(__name__)


class VerificationOrchestrator:
    """
    Drives one verification attempt through the wizard.

    Holds the current WizardState and swaps it for the result of a pure
    transition; a rejected transition raises TransitionRejected before the
    swap, leaving the state as it was.
    """

    def __init__(self,
                 extraction: Optional[TextExtractionService] = None,
                 rules: Optional[RuleEngine] = None,
                 decision_engine: Optional[DecisionEngine] = None):
        self.extraction = extraction or TextExtractionService()
        self.rules = rules or RuleEngine()
        self.decision_engine = decision_engine or DecisionEngine()
        self.state = transitions.initial_state()

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()

    def set_identity(self, claimed_identity: str) -> WizardState:
        self.state = transitions.set_identity(self.state, claimed_identity)
        return self.state

    def attach_evidence(self, stage: Stage, image: EvidenceImage) -> WizardState:
        self.state = transitions.attach_evidence(self.state, stage, image)
        return self.state

    def ingest(self, stage: Stage, source: IngestionSource) -> WizardState:
        """Acquire an image and attach it; IngestionError leaves the state untouched."""
        return self.attach_evidence(stage, acquire(source))

    def advance(self) -> WizardState:
        self.state = transitions.advance(self.state)
        logger.info(f"[WIZARD] advanced to {self.state.step.value}")
        return self.state

    def retreat(self) -> WizardState:
        self.state = transitions.retreat(self.state)
        logger.info(f"[WIZARD] back to {self.state.step.value}")
        return self.state

    def reset(self) -> WizardState:
        if self.state.in_flight:
            logger.info("[WIZARD] reset during submission; its result will be discarded")
        self.state = transitions.reset(self.state)
        return self.state

    async def submit(self) -> Optional[Verdict]:
        """
        Run both evidence stages in order and move to the result step.

        Returns the verdict, or None when the attempt was reset while the
        submission was running. Raises TransitionRejected if the guard fails
        and SubmissionError on any unexpected failure (state goes back to the
        profile step, ready for a retry).
        """
        # No await between the guard and the flag being set
        self.state = transitions.begin_submit(self.state)
        attempt = self.state
        logger.info(f"[SUBMIT] started for {attempt.claimed_identity!r}")

        try:
            verdict = await self._run_stages(attempt)
        except Exception as e:
            logger.exception(f"[SUBMIT] failed for {attempt.claimed_identity!r}")
            if self.state.attempt == attempt.attempt:
                self.state = transitions.abort_submit(self.state)
            raise SubmissionError(f"Verification failed: {e}") from e

        if self.state.attempt != attempt.attempt:
            logger.info(f"[SUBMIT] discarded stale result for {attempt.claimed_identity!r}")
            return None

        self.state = transitions.complete_submit(self.state, verdict)
        return verdict

    async def _run_stages(self, attempt: WizardState) -> Verdict:
        claimed_identity = attempt.claimed_identity

        # Step 1: identity, no OCR involved
        identity = self.rules.evaluate_identity(claimed_identity)

        # Step 2: kill-count screenshot
        kill_text = await self.extraction.extract_text(attempt.kill_count_image)
        if not kill_text.strip():
            logger.warning("[SUBMIT] kill_count stage has no text; criterion fails on extraction")
        kill_count = self.rules.evaluate_kill_count(kill_text, claimed_identity)

        # Step 3: profile screenshot, only once step 2 is decided
        profile_text = await self.extraction.extract_text(attempt.profile_image)
        if not profile_text.strip():
            logger.warning("[SUBMIT] profile stage has no text; criterion fails on extraction")
        profile = self.rules.evaluate_profile(profile_text, claimed_identity)

        return self.decision_engine.build_verdict(
            claimed_identity=claimed_identity,
            identity=identity,
            kill_count=kill_count,
            profile=profile,
        )
