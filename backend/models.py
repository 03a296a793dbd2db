from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, ClassVar, Set, Dict, Any
from datetime import datetime, date, timezone
from enum import Enum

from risk_scoring import BabyMovement, RiskLevel


class AppointmentType(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    FOLLOW_UP = "follow-up"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ImmunizationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class PostCategory(str, Enum):
    GENERAL = "general"
    PREGNANCY = "pregnancy"
    POSTPARTUM = "postpartum"
    CHILDCARE = "childcare"


class PartialUpdate(BaseModel):
    """
    Base for PATCH bodies. Only fields the client actually sent are applied;
    an explicit null is dropped for columns that cannot be null.
    """
    NON_NULLABLE: ClassVar[Set[str]] = set()

    class Config:
        use_enum_values = True

    def changes(self) -> Dict[str, Any]:
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field not in self.NON_NULLABLE
        }


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ============================================================================
# Users & Auth
# ============================================================================

class UserBase(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    user_id: Optional[str] = None


class UserUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Set[str]] = {"is_postpartum"}

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    pregnancy_weeks: Optional[int] = Field(None, ge=0)
    due_date: Optional[date] = None
    is_postpartum: Optional[bool] = None


class UserResponse(UserBase):
    id: str
    profile_image_url: Optional[str] = None
    pregnancy_weeks: Optional[int] = None
    due_date: Optional[date] = None
    is_postpartum: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserPublic(BaseModel):
    """Author details shown next to community content."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================================================
# ANC Appointments
# ============================================================================

class AncAppointmentCreate(BaseModel):
    doctor_name: str = Field(..., min_length=1)
    appointment_date: datetime
    appointment_type: AppointmentType
    location: str = Field(..., min_length=1)
    notes: Optional[str] = None
    status: AppointmentStatus = Field(AppointmentStatus.SCHEDULED, validate_default=True)

    @field_validator("appointment_date")
    @classmethod
    def normalize_appointment_date(cls, value):
        return to_naive_utc(value)

    class Config:
        use_enum_values = True


class AncAppointmentUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Set[str]] = {
        "doctor_name", "appointment_date", "appointment_type", "location", "status", "reminder_sent"
    }

    doctor_name: Optional[str] = Field(None, min_length=1)
    appointment_date: Optional[datetime] = None
    appointment_type: Optional[AppointmentType] = None
    location: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    reminder_sent: Optional[bool] = None

    @field_validator("appointment_date")
    @classmethod
    def normalize_appointment_date(cls, value):
        return to_naive_utc(value)


class AncAppointmentResponse(BaseModel):
    id: str
    user_id: str
    doctor_name: str
    appointment_date: datetime
    appointment_type: str
    location: str
    notes: Optional[str] = None
    status: str
    reminder_sent: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Risk Assessments
# ============================================================================

class RiskAssessmentCreate(BaseModel):
    """
    Observation submitted by the client. Classification fields are not part
    of this schema, so anything the client sends for them is ignored.
    """
    blood_pressure: Optional[str] = None
    weight: Optional[float] = Field(None, gt=0)
    baby_movement: Optional[BabyMovement] = None
    symptoms: Optional[str] = None

    class Config:
        use_enum_values = True


class RiskAssessmentResponse(BaseModel):
    id: str
    user_id: str
    blood_pressure: Optional[str] = None
    weight: Optional[float] = None
    baby_movement: Optional[str] = None
    symptoms: Optional[str] = None
    risk_level: RiskLevel
    risk_factors: List[str] = []
    recommendations: Optional[str] = None
    assessment_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Immunizations
# ============================================================================

class ImmunizationCreate(BaseModel):
    child_name: str = Field(..., min_length=1)
    child_birth_date: Optional[date] = None
    vaccine_name: str = Field(..., min_length=1)
    scheduled_date: date
    completed_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: ImmunizationStatus = Field(ImmunizationStatus.PENDING, validate_default=True)

    class Config:
        use_enum_values = True


class ImmunizationUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[Set[str]] = {
        "child_name", "vaccine_name", "scheduled_date", "status", "reminder_sent"
    }

    child_name: Optional[str] = Field(None, min_length=1)
    child_birth_date: Optional[date] = None
    vaccine_name: Optional[str] = Field(None, min_length=1)
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[ImmunizationStatus] = None
    reminder_sent: Optional[bool] = None


class ImmunizationResponse(BaseModel):
    id: str
    user_id: str
    child_name: str
    child_birth_date: Optional[date] = None
    vaccine_name: str
    scheduled_date: date
    completed_date: Optional[date] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    reminder_sent: bool = False
    status: str
    effective_status: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ImmunizationSummary(BaseModel):
    upcoming: int
    completed: int
    overdue: int
    total: int


# ============================================================================
# Community
# ============================================================================

class CommunityPostCreate(BaseModel):
    title: Optional[str] = None
    content: str = Field(..., min_length=1)
    category: Optional[PostCategory] = None

    class Config:
        use_enum_values = True


class CommunityPostResponse(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    content: str
    category: Optional[str] = None
    likes: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommunityFeedPost(CommunityPostResponse):
    user: UserPublic
    comment_count: int = 0


class CommunityCommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class CommunityCommentResponse(BaseModel):
    id: str
    post_id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommunityCommentWithAuthor(CommunityCommentResponse):
    user: UserPublic


# ============================================================================
# Dashboard
# ============================================================================

class PregnancyWeeksResponse(BaseModel):
    lmp: date
    weeks: int
    trimester: int
    estimated_due_date: date


class DashboardResponse(BaseModel):
    user: UserResponse
    trimester: Optional[int] = None
    upcoming_appointments: List[AncAppointmentResponse] = []
    latest_risk_assessment: Optional[RiskAssessmentResponse] = None
    immunizations: ImmunizationSummary
