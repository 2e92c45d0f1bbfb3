"""
Wizard state machine as pure functions.

Every transition takes a WizardState and returns a new one. A transition
whose guard fails raises TransitionRejected and the caller keeps the state
it already had, so a rejected transition is a no-op.

    IDENTITY -> KILL_COUNT_EVIDENCE -> PROFILE_EVIDENCE -> RESULT
        ^                                                     |
        +-------------------------- reset -------------------+
"""

from dataclasses import replace

from .errors import TransitionRejected
from .models import EVIDENCE_STEPS, EvidenceImage, Stage, Verdict, WizardState, WizardStep


def initial_state() -> WizardState:
    return WizardState()


def set_identity(state: WizardState, claimed_identity: str) -> WizardState:
    if state.step != WizardStep.IDENTITY:
        raise TransitionRejected("set_identity", f"identity is frozen in step {state.step.value}")
    return replace(state, claimed_identity=claimed_identity)


def attach_evidence(state: WizardState, stage: Stage, image: EvidenceImage) -> WizardState:
    step = EVIDENCE_STEPS.get(stage)
    if step is None:
        raise TransitionRejected("attach_evidence", f"stage {stage.value} takes no evidence")
    if state.step != step:
        raise TransitionRejected(
            "attach_evidence", f"{stage.value} evidence belongs to step {step.value}, not {state.step.value}"
        )
    if state.in_flight:
        raise TransitionRejected("attach_evidence", "submission in flight")
    if stage == Stage.KILL_COUNT:
        return replace(state, kill_count_image=image)
    return replace(state, profile_image=image)


def advance(state: WizardState) -> WizardState:
    if state.step == WizardStep.IDENTITY:
        if not state.claimed_identity.strip():
            raise TransitionRejected("advance", "claimed identity is empty")
        return replace(state, step=WizardStep.KILL_COUNT_EVIDENCE)

    if state.step == WizardStep.KILL_COUNT_EVIDENCE:
        if state.kill_count_image is None:
            raise TransitionRejected("advance", "no kill-count evidence ingested")
        return replace(state, step=WizardStep.PROFILE_EVIDENCE)

    if state.step == WizardStep.PROFILE_EVIDENCE:
        raise TransitionRejected("advance", "use submit to leave the profile step")

    raise TransitionRejected("advance", "result is terminal; use reset")


def retreat(state: WizardState) -> WizardState:
    if state.step == WizardStep.KILL_COUNT_EVIDENCE:
        return replace(state, step=WizardStep.IDENTITY)

    if state.step == WizardStep.PROFILE_EVIDENCE:
        if state.in_flight:
            raise TransitionRejected("retreat", "submission in flight")
        return replace(state, step=WizardStep.KILL_COUNT_EVIDENCE)

    raise TransitionRejected("retreat", f"no previous step from {state.step.value}")


def begin_submit(state: WizardState) -> WizardState:
    if state.step != WizardStep.PROFILE_EVIDENCE:
        raise TransitionRejected("submit", f"cannot submit from step {state.step.value}")
    if state.in_flight:
        raise TransitionRejected("submit", "submission already in flight")
    if state.profile_image is None:
        raise TransitionRejected("submit", "no profile evidence ingested")
    if state.kill_count_image is None:
        raise TransitionRejected("submit", "no kill-count evidence ingested")
    return replace(state, in_flight=True)


def complete_submit(state: WizardState, verdict: Verdict) -> WizardState:
    if not state.in_flight:
        raise TransitionRejected("complete_submit", "no submission in flight")
    return replace(state, in_flight=False, verdict=verdict, step=WizardStep.RESULT)


def abort_submit(state: WizardState) -> WizardState:
    return replace(state, in_flight=False, step=WizardStep.PROFILE_EVIDENCE, verdict=None)


def reset(state: WizardState) -> WizardState:
    """Always allowed. Clears identity, evidence and verdict."""
    return WizardState(attempt=state.attempt + 1)
