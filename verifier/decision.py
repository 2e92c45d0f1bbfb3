from typing import List
import logging

from .models import IdentityOutcome, KillCountOutcome, ProfileOutcome, Verdict

logger = logging.getLogger(__name__)

class DecisionEngine:
    """
    Aggregates stage outcomes into the final verdict.
    overall_valid is the AND of every stage; reasons list each unmet criterion.
    """

    def collect_reasons(self,
                        identity: IdentityOutcome,
                        kill_count: KillCountOutcome,
                        profile: ProfileOutcome) -> List[str]:
        reasons = []

        if not identity.valid:
            reasons.append("IDENTITY_EMPTY")

        # Both kill-count conditions are reported independently
        if kill_count.kill_count < kill_count.min_kill_count:
            reasons.append("KILL_COUNT_BELOW_THRESHOLD")
        if not kill_count.name_found:
            reasons.append("NAME_NOT_FOUND_IN_KILL_COUNT")

        if not profile.name_match:
            reasons.append("NAME_NOT_FOUND_IN_PROFILE")

        return reasons

    def build_verdict(self,
                      claimed_identity: str,
                      identity: IdentityOutcome,
                      kill_count: KillCountOutcome,
                      profile: ProfileOutcome) -> Verdict:
        reasons = self.collect_reasons(identity, kill_count, profile)
        verdict = Verdict(
            claimed_identity=claimed_identity,
            identity=identity,
            kill_count=kill_count,
            profile=profile,
            reasons=tuple(reasons),
        )
        logger.info(
            f"[VERDICT] {claimed_identity!r}: overall_valid={verdict.overall_valid} "
            f"reasons={reasons}"
        )
        return verdict
