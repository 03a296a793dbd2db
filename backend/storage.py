"""
Storage layer for the MomCare API.

Wraps a per-request SQLAlchemy session and exposes the create/read/update/delete
operations the routers need. Every write commits on success and rolls back on
failure; the error is re-raised for the router to translate.

Owned records are always looked up together with the owner's id, so a record
belonging to someone else is indistinguishable from a missing one.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from database import (
    User,
    AncAppointment,
    RiskAssessment,
    Immunization,
    CommunityPost,
    CommunityComment,
)
from risk_scoring import RiskObservation, RiskScore
from structured_logging import get_logger

logger = get_logger("storage")


class Storage:
    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _commit(self, operation: str, table: str):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(
                "Database write failed",
                extra={"db_operation": operation, "db_table": table},
                exc_info=True
            )
            raise

    def _add(self, record, table: str):
        self.db.add(record)
        self._commit("insert", table)
        self.db.refresh(record)
        return record

    def _apply(self, record, updates: Dict[str, Any], table: str):
        for field, value in updates.items():
            setattr(record, field, value)
        record.updated_at = datetime.utcnow()
        self._commit("update", table)
        self.db.refresh(record)
        return record

    def _delete(self, record, table: str) -> bool:
        if record is None:
            return False
        self.db.delete(record)
        self._commit("delete", table)
        return True

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def create_user(self, email: str, hashed_password: Optional[str] = None, **fields) -> User:
        user = User(email=email, hashed_password=hashed_password, **fields)
        return self._add(user, "users")

    def update_user(self, user: User, updates: Dict[str, Any]) -> User:
        return self._apply(user, updates, "users")

    # =========================================================================
    # ANC APPOINTMENTS
    # =========================================================================

    def create_anc_appointment(self, user_id: str, data: Dict[str, Any]) -> AncAppointment:
        appointment = AncAppointment(user_id=user_id, **data)
        return self._add(appointment, "anc_appointments")

    def get_user_anc_appointments(self, user_id: str) -> List[AncAppointment]:
        return self.db.query(AncAppointment).filter(
            AncAppointment.user_id == user_id
        ).order_by(AncAppointment.appointment_date.desc()).all()

    def get_upcoming_anc_appointments(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        limit: int = 2
    ) -> List[AncAppointment]:
        """Scheduled appointments from now on, soonest first."""
        now = now or datetime.utcnow()
        return self.db.query(AncAppointment).filter(
            AncAppointment.user_id == user_id,
            AncAppointment.status == "scheduled",
            AncAppointment.appointment_date >= now
        ).order_by(AncAppointment.appointment_date.asc()).limit(limit).all()

    def get_anc_appointment(self, appointment_id: str, user_id: str) -> Optional[AncAppointment]:
        return self.db.query(AncAppointment).filter(
            AncAppointment.id == appointment_id,
            AncAppointment.user_id == user_id
        ).first()

    def update_anc_appointment(
        self,
        appointment_id: str,
        user_id: str,
        updates: Dict[str, Any]
    ) -> Optional[AncAppointment]:
        appointment = self.get_anc_appointment(appointment_id, user_id)
        if appointment is None:
            return None
        return self._apply(appointment, updates, "anc_appointments")

    def delete_anc_appointment(self, appointment_id: str, user_id: str) -> bool:
        return self._delete(self.get_anc_appointment(appointment_id, user_id), "anc_appointments")

    # =========================================================================
    # RISK ASSESSMENTS (append-only)
    # =========================================================================

    def create_risk_assessment(
        self,
        user_id: str,
        observation: RiskObservation,
        score: RiskScore
    ) -> RiskAssessment:
        assessment = RiskAssessment(
            user_id=user_id,
            blood_pressure=observation.blood_pressure,
            weight=observation.weight,
            baby_movement=observation.baby_movement,
            symptoms=observation.symptoms,
            risk_level=score.risk_level.value,
            risk_factors=list(score.risk_factors),
            recommendations=score.recommendations,
        )
        return self._add(assessment, "risk_assessments")

    def get_user_risk_assessments(self, user_id: str) -> List[RiskAssessment]:
        return self.db.query(RiskAssessment).filter(
            RiskAssessment.user_id == user_id
        ).order_by(RiskAssessment.assessment_date.desc()).all()

    def get_latest_risk_assessment(self, user_id: str) -> Optional[RiskAssessment]:
        return self.db.query(RiskAssessment).filter(
            RiskAssessment.user_id == user_id
        ).order_by(RiskAssessment.assessment_date.desc()).first()

    # =========================================================================
    # IMMUNIZATIONS
    # =========================================================================

    def create_immunization(self, user_id: str, data: Dict[str, Any]) -> Immunization:
        immunization = Immunization(user_id=user_id, **data)
        return self._add(immunization, "immunizations")

    def get_user_immunizations(self, user_id: str) -> List[Immunization]:
        return self.db.query(Immunization).filter(
            Immunization.user_id == user_id
        ).order_by(Immunization.scheduled_date.desc()).all()

    def get_immunization(self, immunization_id: str, user_id: str) -> Optional[Immunization]:
        return self.db.query(Immunization).filter(
            Immunization.id == immunization_id,
            Immunization.user_id == user_id
        ).first()

    def update_immunization(
        self,
        immunization_id: str,
        user_id: str,
        updates: Dict[str, Any]
    ) -> Optional[Immunization]:
        immunization = self.get_immunization(immunization_id, user_id)
        if immunization is None:
            return None
        return self._apply(immunization, updates, "immunizations")

    def delete_immunization(self, immunization_id: str, user_id: str) -> bool:
        return self._delete(self.get_immunization(immunization_id, user_id), "immunizations")

    # =========================================================================
    # COMMUNITY
    # =========================================================================

    def create_community_post(self, user_id: str, data: Dict[str, Any]) -> CommunityPost:
        post = CommunityPost(user_id=user_id, **data)
        return self._add(post, "community_posts")

    def get_community_post(self, post_id: str) -> Optional[CommunityPost]:
        return self.db.query(CommunityPost).filter(CommunityPost.id == post_id).first()

    def get_community_posts(self, limit: int = 20, offset: int = 0) -> List[Tuple[CommunityPost, int]]:
        """Newest posts first, each paired with its comment count."""
        comment_counts = self.db.query(
            CommunityComment.post_id.label("post_id"),
            func.count(CommunityComment.id).label("comment_count")
        ).group_by(CommunityComment.post_id).subquery()

        rows = self.db.query(
            CommunityPost,
            func.coalesce(comment_counts.c.comment_count, 0)
        ).outerjoin(
            comment_counts, CommunityPost.id == comment_counts.c.post_id
        ).options(
            joinedload(CommunityPost.user)
        ).order_by(
            CommunityPost.created_at.desc()
        ).limit(limit).offset(offset).all()

        return [(post, int(count)) for post, count in rows]

    def get_user_community_posts(self, user_id: str) -> List[CommunityPost]:
        return self.db.query(CommunityPost).filter(
            CommunityPost.user_id == user_id
        ).order_by(CommunityPost.created_at.desc()).all()

    def like_community_post(self, post_id: str) -> Optional[CommunityPost]:
        # Single UPDATE so concurrent likes are not lost
        updated = self.db.query(CommunityPost).filter(
            CommunityPost.id == post_id
        ).update(
            {
                CommunityPost.likes: CommunityPost.likes + 1,
                CommunityPost.updated_at: datetime.utcnow(),
            },
            synchronize_session=False
        )
        if not updated:
            self.db.rollback()
            return None
        self._commit("update", "community_posts")
        return self.get_community_post(post_id)

    def create_community_comment(self, post_id: str, user_id: str, data: Dict[str, Any]) -> CommunityComment:
        comment = CommunityComment(post_id=post_id, user_id=user_id, **data)
        return self._add(comment, "community_comments")

    def get_post_comments(self, post_id: str) -> List[CommunityComment]:
        return self.db.query(CommunityComment).options(
            joinedload(CommunityComment.user)
        ).filter(
            CommunityComment.post_id == post_id
        ).order_by(CommunityComment.created_at.desc()).all()
