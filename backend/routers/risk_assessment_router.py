"""
Risk Assessment Router

Endpoints for:
- Submitting a self-reported prenatal observation and getting it scored
- Reading the assessment history and the latest classification

The classification is always computed here from the observation and the
stored pregnancy weeks; the client never supplies it.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, User
from auth import get_current_active_user
from models import RiskAssessmentCreate, RiskAssessmentResponse
from risk_scoring import RiskObservation, score_risk
from storage import Storage
from structured_logging import log_risk_assessment

router = APIRouter(prefix="/api/risk-assessments", tags=["Risk Assessment"])


@router.get("", response_model=List[RiskAssessmentResponse])
def get_user_risk_assessments(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Assessment history, newest first."""
    return Storage(db).get_user_risk_assessments(current_user.id)


@router.get("/latest", response_model=Optional[RiskAssessmentResponse])
def get_latest_risk_assessment(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Most recent assessment, or null if none has been submitted yet."""
    return Storage(db).get_latest_risk_assessment(current_user.id)


@router.post("", response_model=RiskAssessmentResponse, status_code=201)
def create_risk_assessment(
    submission: RiskAssessmentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Score an observation and store it.

    Weight is judged against the pregnancy weeks on the user's profile, so
    a profile without pregnancy weeks never triggers the weight rule.
    """
    observation = RiskObservation(
        blood_pressure=submission.blood_pressure,
        weight=submission.weight,
        baby_movement=submission.baby_movement,
        symptoms=submission.symptoms,
        pregnancy_weeks=current_user.pregnancy_weeks,
    )
    score = score_risk(observation)

    try:
        assessment = Storage(db).create_risk_assessment(current_user.id, observation, score)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save risk assessment")

    log_risk_assessment(
        user_id=current_user.id,
        risk_level=score.risk_level.value,
        risk_factors=score.risk_factors,
        assessment_id=assessment.id,
        pregnancy_weeks=current_user.pregnancy_weeks,
    )
    return assessment
