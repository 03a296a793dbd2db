"""
Dashboard Router

Home-screen aggregate for the current user and the pregnancy week calculator.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db, User
from auth import get_current_active_user
from models import DashboardResponse, PregnancyWeeksResponse
from pregnancy_calendar import (
    weeks_from_lmp, estimated_due_date, trimester, summarize_immunizations
)
from storage import Storage

router = APIRouter(tags=["Dashboard"])


@router.get("/api/dashboard", response_model=DashboardResponse)
def get_dashboard(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Everything the home screen shows in one call:
    - the user profile and current trimester
    - the next two scheduled appointments
    - the latest risk assessment (or null)
    - immunization counts
    """
    storage = Storage(db)
    return {
        "user": current_user,
        "trimester": trimester(current_user.pregnancy_weeks),
        "upcoming_appointments": storage.get_upcoming_anc_appointments(current_user.id, limit=2),
        "latest_risk_assessment": storage.get_latest_risk_assessment(current_user.id),
        "immunizations": summarize_immunizations(storage.get_user_immunizations(current_user.id)),
    }


@router.get("/api/pregnancy/weeks", response_model=PregnancyWeeksResponse)
def get_pregnancy_weeks(
    lmp: date = Query(..., description="First day of the last menstrual period"),
    current_user: User = Depends(get_current_active_user)
):
    weeks = weeks_from_lmp(lmp)
    if weeks is None:
        raise HTTPException(status_code=400, detail="LMP date cannot be in the future")

    return {
        "lmp": lmp,
        "weeks": weeks,
        "trimester": trimester(weeks),
        "estimated_due_date": estimated_due_date(lmp),
    }
