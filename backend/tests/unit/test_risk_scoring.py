"""
Unit tests for the prenatal risk scoring rules.

Tests:
- Each rule in isolation
- Rule ordering of the reported factors
- Levels only ever go up
- Absent, empty and zero inputs are skipped
"""

import pytest
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from risk_scoring import (
    RiskLevel,
    RiskObservation,
    RiskScore,
    score_risk,
    RECOMMENDATIONS,
    HIGH_BLOOD_PRESSURE,
    EXCESSIVE_WEIGHT_GAIN,
    REDUCED_FETAL_MOVEMENT,
    BLEEDING_SYMPTOMS,
)


class TestNoFindings:
    """Observations that trigger no rule."""

    def test_empty_observation_is_low(self):
        score = score_risk(RiskObservation())

        assert score.risk_level == RiskLevel.LOW
        assert score.risk_factors == []
        assert score.recommendations == RECOMMENDATIONS[RiskLevel.LOW]

    def test_normal_readings_are_low(self):
        score = score_risk(RiskObservation(
            blood_pressure="118/76",
            weight=8.0,
            baby_movement="active",
            symptoms="mild back pain",
            pregnancy_weeks=24,
        ))

        assert score.risk_level == RiskLevel.LOW
        assert score.risk_factors == []

    def test_empty_strings_are_skipped(self):
        score = score_risk(RiskObservation(blood_pressure="", symptoms=""))
        assert score.risk_level == RiskLevel.LOW


class TestBloodPressure:
    """Tests for the blood pressure rule (substring match)."""

    def test_reading_with_high_marker(self):
        score = score_risk(RiskObservation(blood_pressure="140/90 high"))

        assert score.risk_level == RiskLevel.HIGH
        assert score.risk_factors == [HIGH_BLOOD_PRESSURE]

    def test_reading_containing_140(self):
        score = score_risk(RiskObservation(blood_pressure="140/95"))
        assert score.risk_factors == [HIGH_BLOOD_PRESSURE]

    def test_match_is_case_sensitive(self):
        """Only lowercase "high" counts."""
        score = score_risk(RiskObservation(blood_pressure="HIGH"))
        assert score.risk_factors == []

    def test_other_numbers_do_not_match(self):
        score = score_risk(RiskObservation(blood_pressure="150/100"))
        assert score.risk_level == RiskLevel.LOW


class TestWeightGain:
    """Tests for the weight gain rule: weight > 0.5 * weeks * 1.5."""

    def test_excessive_gain_is_medium(self):
        score = score_risk(RiskObservation(weight=20, pregnancy_weeks=10))

        assert score.risk_level == RiskLevel.MEDIUM
        assert score.risk_factors == [EXCESSIVE_WEIGHT_GAIN]
        assert score.recommendations == RECOMMENDATIONS[RiskLevel.MEDIUM]

    def test_threshold_is_exclusive(self):
        # 0.5 * 20 * 1.5 == 15
        assert score_risk(RiskObservation(weight=15, pregnancy_weeks=20)).risk_factors == []
        assert score_risk(RiskObservation(weight=15.1, pregnancy_weeks=20)).risk_factors == [
            EXCESSIVE_WEIGHT_GAIN
        ]

    def test_missing_weeks_skips_rule(self):
        score = score_risk(RiskObservation(weight=90))
        assert score.risk_level == RiskLevel.LOW

    def test_zero_weeks_skips_rule(self):
        score = score_risk(RiskObservation(weight=90, pregnancy_weeks=0))
        assert score.risk_factors == []


class TestFetalMovement:

    def test_reduced_movement_is_high(self):
        score = score_risk(RiskObservation(baby_movement="reduced"))

        assert score.risk_level == RiskLevel.HIGH
        assert score.risk_factors == [REDUCED_FETAL_MOVEMENT]

    @pytest.mark.parametrize("movement", ["active", "normal", "none"])
    def test_other_values_do_not_trigger(self, movement):
        """Only "reduced" triggers the rule, "none" included."""
        score = score_risk(RiskObservation(baby_movement=movement))
        assert score.risk_factors == []


class TestSymptoms:

    def test_bleeding_is_case_insensitive(self):
        score = score_risk(RiskObservation(symptoms="Heavy Bleeding today"))

        assert score.risk_level == RiskLevel.HIGH
        assert score.risk_factors == [BLEEDING_SYMPTOMS]

    def test_unrelated_symptoms(self):
        score = score_risk(RiskObservation(symptoms="nausea and headache"))
        assert score.risk_factors == []


class TestCombinedRules:
    """Tests for rule ordering and monotonic levels."""

    def test_blood_pressure_and_weight(self):
        score = score_risk(RiskObservation(
            blood_pressure="high", weight=30, pregnancy_weeks=10
        ))

        assert score.risk_level == RiskLevel.HIGH
        assert score.risk_factors == [HIGH_BLOOD_PRESSURE, EXCESSIVE_WEIGHT_GAIN]

    def test_medium_rule_never_lowers_high(self):
        score = score_risk(RiskObservation(
            baby_movement="reduced", weight=30, pregnancy_weeks=10
        ))

        assert score.risk_level == RiskLevel.HIGH
        assert score.recommendations == RECOMMENDATIONS[RiskLevel.HIGH]

    def test_all_rules_in_order(self):
        score = score_risk(RiskObservation(
            blood_pressure="140/90",
            weight=30,
            baby_movement="reduced",
            symptoms="some bleeding",
            pregnancy_weeks=10,
        ))

        assert score.risk_factors == [
            HIGH_BLOOD_PRESSURE,
            EXCESSIVE_WEIGHT_GAIN,
            REDUCED_FETAL_MOVEMENT,
            BLEEDING_SYMPTOMS,
        ]
        assert score.risk_level == RiskLevel.HIGH

    def test_scoring_is_deterministic(self):
        observation = RiskObservation(blood_pressure="140/90", symptoms="bleeding")
        assert score_risk(observation) == score_risk(observation)


class TestRiskScore:

    def test_to_dict(self):
        score = RiskScore(
            risk_level=RiskLevel.MEDIUM,
            risk_factors=[EXCESSIVE_WEIGHT_GAIN],
            recommendations=RECOMMENDATIONS[RiskLevel.MEDIUM],
        )

        assert score.to_dict() == {
            "risk_level": "medium",
            "risk_factors": ["Excessive weight gain"],
            "recommendations": RECOMMENDATIONS[RiskLevel.MEDIUM],
        }

    def test_severity_ordering(self):
        assert RiskLevel.LOW.severity < RiskLevel.MEDIUM.severity < RiskLevel.HIGH.severity
