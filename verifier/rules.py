import logging
import re
from typing import List, Optional
from config import settings, WHITESPACE_REGEX

from .models import IdentityOutcome, KillCountOutcome, ProfileOutcome

logger = logging.getLogger(__name__)

class RuleEngine:
    """
    Applies the per-stage heuristics to raw OCR text.
    Pure and synchronous; empty text yields a failed stage, never an error.
    """

    def __init__(self, min_kill_count: Optional[int] = None, min_digit_run: Optional[int] = None):
        self.min_kill_count = settings.MIN_KILL_COUNT if min_kill_count is None else min_kill_count
        self.min_digit_run = settings.MIN_DIGIT_RUN if min_digit_run is None else min_digit_run
        if self.min_digit_run < 1:
            raise ValueError(f"min_digit_run must be at least 1, got {self.min_digit_run}")
        self.whitespace_regex = re.compile(WHITESPACE_REGEX)
        self.digit_run_regex = re.compile(r"[0-9]{%d,}" % self.min_digit_run)

    def normalize_text(self, text: Optional[str]) -> str:
        """Collapse whitespace runs (OCR line breaks included) and trim"""
        if not text:
            return ""
        return self.whitespace_regex.sub(" ", text).strip()

    def name_present(self, text: Optional[str], claimed_identity: str) -> bool:
        """Case-insensitive substring test of the claimed name in normalized text"""
        name = claimed_identity.strip().lower()
        if not name:
            return False
        return name in self.normalize_text(text).lower()

    def extract_digit_runs(self, text: Optional[str]) -> List[int]:
        """All maximal digit runs long enough to not be UI chrome"""
        return [int(run) for run in self.digit_run_regex.findall(self.normalize_text(text))]

    def extract_kill_count(self, text: Optional[str]) -> int:
        """
        Largest qualifying number in the screenshot.
        The cumulative total is assumed to outsize per-session figures shown next to it.
        """
        runs = self.extract_digit_runs(text)
        return max(runs) if runs else 0

    def evaluate_identity(self, claimed_identity: str) -> IdentityOutcome:
        return IdentityOutcome(claimed_identity=claimed_identity)

    def evaluate_kill_count(self, text: Optional[str], claimed_identity: str) -> KillCountOutcome:
        outcome = KillCountOutcome(
            kill_count=self.extract_kill_count(text),
            name_found=self.name_present(text, claimed_identity),
            min_kill_count=self.min_kill_count,
        )
        logger.info(
            f"[RULES] kill_count stage: runs={self.extract_digit_runs(text)} "
            f"kill_count={outcome.kill_count} name_found={outcome.name_found} valid={outcome.valid}"
        )
        return outcome

    def evaluate_profile(self, text: Optional[str], claimed_identity: str) -> ProfileOutcome:
        outcome = ProfileOutcome(name_match=self.name_present(text, claimed_identity))
        logger.info(f"[RULES] profile stage: name_match={outcome.name_match}")
        return outcome
