"""
Immunization Router

Endpoints for:
- Child vaccine schedule (list, add, update, delete)
- Summary counts of upcoming, completed and overdue shots

Pending shots whose scheduled date has passed are reported with an
effective status of "overdue"; the stored status is left untouched.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List

from database import get_db, User, Immunization
from auth import get_current_active_user
from models import (
    ImmunizationCreate, ImmunizationUpdate, ImmunizationResponse, ImmunizationSummary
)
from pregnancy_calendar import effective_immunization_status, summarize_immunizations
from storage import Storage
from structured_logging import get_logger

router = APIRouter(prefix="/api/immunizations", tags=["Immunizations"])
logger = get_logger("api.immunizations")


def _to_response(immunization: Immunization) -> ImmunizationResponse:
    response = ImmunizationResponse.model_validate(immunization)
    response.effective_status = effective_immunization_status(
        immunization.status, immunization.scheduled_date
    )
    return response


@router.get("", response_model=List[ImmunizationResponse])
def get_user_immunizations(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get the vaccine schedule, latest scheduled date first."""
    return [_to_response(item) for item in Storage(db).get_user_immunizations(current_user.id)]


@router.get("/summary", response_model=ImmunizationSummary)
def get_immunization_summary(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return summarize_immunizations(Storage(db).get_user_immunizations(current_user.id))


@router.post("", response_model=ImmunizationResponse, status_code=201)
def create_immunization(
    immunization: ImmunizationCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Add a vaccine to the schedule."""
    try:
        created = Storage(db).create_immunization(current_user.id, immunization.model_dump())
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create immunization")

    logger.info(
        "Immunization scheduled",
        extra={"user_id": current_user.id, "immunization_id": created.id}
    )
    return _to_response(created)


@router.patch("/{immunization_id}", response_model=ImmunizationResponse)
def update_immunization(
    immunization_id: str,
    updates: ImmunizationUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update a schedule entry (e.g. mark completed with the date given)."""
    changes = updates.changes()
    storage = Storage(db)

    try:
        if changes:
            immunization = storage.update_immunization(immunization_id, current_user.id, changes)
        else:
            immunization = storage.get_immunization(immunization_id, current_user.id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update immunization")

    if not immunization:
        raise HTTPException(status_code=404, detail="Immunization not found")
    return _to_response(immunization)


@router.delete("/{immunization_id}", status_code=204)
def delete_immunization(
    immunization_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        deleted = Storage(db).delete_immunization(immunization_id, current_user.id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete immunization")

    if not deleted:
        raise HTTPException(status_code=404, detail="Immunization not found")
    return Response(status_code=204)
