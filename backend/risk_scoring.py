"""
Prenatal Risk Scoring Module

Rule-based triage of self-reported prenatal observations:
- Blood pressure reading (free text)
- Weight gain relative to gestational age
- Fetal movement
- Reported symptoms

This is a deliberate stand-in heuristic, not a clinical model. The thresholds
and substring matches below are kept exactly as the mobile client expects;
changing them changes the classification of stored history.

The scorer is a pure function: no I/O, no stored state. Persisting the result
is the caller's job (see routers/risk_assessment_router.py).
"""

from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum


class RiskLevel(str, Enum):
    """Coarse triage classification"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class BabyMovement(str, Enum):
    """Mother-reported fetal movement"""
    ACTIVE = "active"
    NORMAL = "normal"
    REDUCED = "reduced"
    NONE = "none"


# Risk factor labels, in rule-evaluation order
HIGH_BLOOD_PRESSURE = "High blood pressure"
EXCESSIVE_WEIGHT_GAIN = "Excessive weight gain"
REDUCED_FETAL_MOVEMENT = "Reduced fetal movement"
BLEEDING_SYMPTOMS = "Bleeding symptoms"

# Weight heuristic: flat 0.5 kg per week, flagged above 1.5x that
EXPECTED_GAIN_KG_PER_WEEK = 0.5
WEIGHT_GAIN_TOLERANCE = 1.5

RECOMMENDATIONS = {
    RiskLevel.HIGH: "Please contact your healthcare provider immediately and schedule an urgent appointment.",
    RiskLevel.MEDIUM: "Monitor symptoms closely and schedule a follow-up appointment within the week.",
    RiskLevel.LOW: "Continue with regular prenatal care and maintain healthy habits.",
}


@dataclass(frozen=True)
class RiskObservation:
    """
    Input to the scorer. Every field is optional.

    pregnancy_weeks comes from the stored user profile, never from the
    request body.
    """
    blood_pressure: Optional[str] = None
    weight: Optional[float] = None  # kg
    baby_movement: Optional[str] = None
    symptoms: Optional[str] = None
    pregnancy_weeks: Optional[int] = None


@dataclass
class RiskScore:
    risk_level: RiskLevel = RiskLevel.LOW
    risk_factors: List[str] = field(default_factory=list)
    recommendations: str = RECOMMENDATIONS[RiskLevel.LOW]

    def to_dict(self) -> dict:
        return {
            "risk_level": self.risk_level.value,
            "risk_factors": list(self.risk_factors),
            "recommendations": self.recommendations,
        }


def _raise_to(current: RiskLevel, candidate: RiskLevel) -> RiskLevel:
    """Rules may only raise the level, never lower it."""
    return candidate if candidate.severity > current.severity else current


def score_risk(observation: RiskObservation) -> RiskScore:
    """
    Classify an observation as low / medium / high risk.

    Rules are evaluated in a fixed order and each triggered rule appends its
    factor label. Absent (or empty/zero) fields are skipped, so the function
    never fails on well-typed input.
    """
    level = RiskLevel.LOW
    factors: List[str] = []

    bp = observation.blood_pressure
    if bp and ("high" in bp or "140" in bp):
        factors.append(HIGH_BLOOD_PRESSURE)
        level = _raise_to(level, RiskLevel.HIGH)

    if observation.weight and observation.pregnancy_weeks:
        expected_weight = EXPECTED_GAIN_KG_PER_WEEK * observation.pregnancy_weeks
        if observation.weight > expected_weight * WEIGHT_GAIN_TOLERANCE:
            factors.append(EXCESSIVE_WEIGHT_GAIN)
            level = _raise_to(level, RiskLevel.MEDIUM)

    if observation.baby_movement == BabyMovement.REDUCED:
        factors.append(REDUCED_FETAL_MOVEMENT)
        level = _raise_to(level, RiskLevel.HIGH)

    if observation.symptoms and "bleeding" in observation.symptoms.lower():
        factors.append(BLEEDING_SYMPTOMS)
        level = _raise_to(level, RiskLevel.HIGH)

    return RiskScore(
        risk_level=level,
        risk_factors=factors,
        recommendations=RECOMMENDATIONS[level],
    )
