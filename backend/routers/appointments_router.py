"""
ANC Appointments Router

Endpoints for:
- Listing the mother's antenatal care appointments
- Booking, updating (status, reschedule, notes) and deleting appointments
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List

from database import get_db, User
from auth import get_current_active_user
from models import AncAppointmentCreate, AncAppointmentUpdate, AncAppointmentResponse
from storage import Storage
from structured_logging import get_logger

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])
logger = get_logger("api.appointments")


@router.get("", response_model=List[AncAppointmentResponse])
def get_user_appointments(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get all appointments for the current user, latest first."""
    return Storage(db).get_user_anc_appointments(current_user.id)


@router.post("", response_model=AncAppointmentResponse, status_code=201)
def create_appointment(
    appointment: AncAppointmentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Book a new ANC appointment."""
    try:
        created = Storage(db).create_anc_appointment(current_user.id, appointment.model_dump())
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create appointment")

    logger.info(
        "Appointment created",
        extra={"user_id": current_user.id, "appointment_id": created.id}
    )
    return created


@router.patch("/{appointment_id}", response_model=AncAppointmentResponse)
def update_appointment(
    appointment_id: str,
    updates: AncAppointmentUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update an appointment (e.g. mark completed or cancelled)."""
    changes = updates.changes()
    storage = Storage(db)

    try:
        if changes:
            appointment = storage.update_anc_appointment(appointment_id, current_user.id, changes)
        else:
            appointment = storage.get_anc_appointment(appointment_id, current_user.id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update appointment")

    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.delete("/{appointment_id}", status_code=204)
def delete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Delete an appointment."""
    try:
        deleted = Storage(db).delete_anc_appointment(appointment_id, current_user.id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to delete appointment")

    if not deleted:
        raise HTTPException(status_code=404, detail="Appointment not found")

    logger.info(
        "Appointment deleted",
        extra={"user_id": current_user.id, "appointment_id": appointment_id}
    )
    return Response(status_code=204)
