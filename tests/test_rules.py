"""Tests for the OCR text heuristics."""

import pytest
from pydantic import ValidationError

from config import Settings
from verifier.rules import RuleEngine


@pytest.fixture
def rules():
    return RuleEngine(min_kill_count=3000, min_digit_run=3)


@pytest.mark.parametrize("identity", ["", " ", "   ", "\t\n"])
def test_blank_identity_is_invalid(rules, identity):
    assert rules.evaluate_identity(identity).valid is False


@pytest.mark.parametrize("identity", ["a", " Aeris ", "x y"])
def test_non_blank_identity_is_valid(rules, identity):
    assert rules.evaluate_identity(identity).valid is True


def test_normalize_collapses_line_breaks(rules):
    assert rules.normalize_text("  Aeris\n\n  KOs\t10306 \r\n") == "Aeris KOs 10306"
    assert rules.normalize_text(None) == ""


def test_digit_runs_ignore_short_numbers(rules):
    assert rules.extract_digit_runs("Lv 12 rank 7 kills 4521") == [4521]


def test_commas_break_digit_runs(rules):
    assert rules.extract_digit_runs("12,345") == [345]
    assert rules.extract_digit_runs("12345") == [12345]


def test_digit_run_inside_word(rules):
    assert rules.extract_digit_runs("ab123cd") == [123]


def test_example_screenshot_text(rules):
    outcome = rules.evaluate_kill_count("Aeris 998 10306", "Aeris")
    assert rules.extract_digit_runs("Aeris 998 10306") == [998, 10306]
    assert outcome.kill_count == 10306
    assert outcome.name_found is True
    assert outcome.valid is True


def test_kill_count_exactly_at_threshold_is_valid(rules):
    assert rules.evaluate_kill_count("aeris total 3000", "Aeris").valid is True


def test_kill_count_below_threshold_is_invalid(rules):
    outcome = rules.evaluate_kill_count("Aeris 2999", "Aeris")
    assert outcome.name_found is True
    assert outcome.valid is False


def test_missing_name_invalidates_high_count(rules):
    outcome = rules.evaluate_kill_count("SomeoneElse 50000", "Aeris")
    assert outcome.kill_count == 50000
    assert outcome.valid is False


def test_no_numbers_means_zero_kills(rules):
    assert rules.extract_kill_count("Aeris has no digits here") == 0


def test_empty_text_fails_both_evidence_stages(rules):
    kills = rules.evaluate_kill_count("", "Aeris")
    profile = rules.evaluate_profile("", "Aeris")
    assert (kills.kill_count, kills.name_found, kills.valid) == (0, False, False)
    assert (profile.name_match, profile.valid) == (False, False)


def test_name_match_is_case_insensitive(rules):
    assert rules.evaluate_profile("@AERIS_the_bold\nFriends 12", "aeris").valid is True


def test_name_split_by_ocr_line_break_still_matches(rules):
    assert rules.name_present("Big\nBoss  joined", "Big Boss") is True


def test_empty_identity_never_matches(rules):
    assert rules.name_present("anything at all", "  ") is False


def test_validity_follows_thresholds():
    strict = RuleEngine(min_kill_count=20000, min_digit_run=3)
    assert strict.evaluate_kill_count("Aeris 10306", "Aeris").valid is False


def test_fullwidth_digits_are_not_counted(rules):
    outcome = rules.evaluate_kill_count("Aeris ３０００", "Aeris")
    assert rules.extract_digit_runs("Aeris ３０００ ٣٠٠٠") == []
    assert outcome.kill_count == 0
    assert outcome.valid is False


@pytest.mark.parametrize("min_digit_run", [0, -1])
def test_digit_run_length_must_be_positive(min_digit_run):
    with pytest.raises(ValueError, match="min_digit_run"):
        RuleEngine(min_kill_count=3000, min_digit_run=min_digit_run)


def test_settings_reject_zero_digit_run():
    with pytest.raises(ValidationError):
        Settings(MIN_DIGIT_RUN=0)
