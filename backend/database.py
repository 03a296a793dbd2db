from sqlalchemy import create_engine, Column, Integer, String, DateTime, Date, Boolean, Text, JSON, Float, ForeignKey
from sqlalchemy.orm import sessionmaker, relationship, declarative_base
from datetime import datetime
import uuid

from config import DATABASE_URL

# Create engine with appropriate connection args
connect_args = {"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    profile_image_url = Column(String)
    is_active = Column(Boolean, default=True)

    # Pregnancy tracking
    pregnancy_weeks = Column(Integer)  # Supplied to the risk engine
    due_date = Column(Date)
    is_postpartum = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    appointments = relationship("AncAppointment", back_populates="user", cascade="all, delete-orphan")
    risk_assessments = relationship("RiskAssessment", back_populates="user", cascade="all, delete-orphan")
    immunizations = relationship("Immunization", back_populates="user", cascade="all, delete-orphan")
    posts = relationship("CommunityPost", back_populates="user", cascade="all, delete-orphan")
    comments = relationship("CommunityComment", back_populates="user", cascade="all, delete-orphan")


class AncAppointment(Base):
    """
    ANC Appointment - Antenatal care checkups booked by the mother
    """
    __tablename__ = "anc_appointments"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    doctor_name = Column(String, nullable=False)
    appointment_date = Column(DateTime, nullable=False, index=True)
    appointment_type = Column(String, nullable=False)  # routine, urgent, follow-up
    location = Column(String, nullable=False)
    notes = Column(Text)
    status = Column(String, nullable=False, default="scheduled")  # scheduled, completed, cancelled
    reminder_sent = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="appointments")


class RiskAssessment(Base):
    """
    Risk Assessment - Self-reported observations plus the scored classification.
    Rows are append-only; there is no update path.
    """
    __tablename__ = "risk_assessments"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    # Observation
    blood_pressure = Column(String)
    weight = Column(Float)  # kg
    baby_movement = Column(String)  # active, normal, reduced, none
    symptoms = Column(Text)

    # Classification (always produced by risk_scoring.score_risk)
    risk_level = Column(String, nullable=False)  # low, medium, high
    risk_factors = Column(JSON, default=list)
    recommendations = Column(Text)

    assessment_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="risk_assessments")


class Immunization(Base):
    """
    Immunization - Child vaccine schedule entry
    """
    __tablename__ = "immunizations"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    child_name = Column(String, nullable=False)
    child_birth_date = Column(Date)
    vaccine_name = Column(String, nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    completed_date = Column(Date)
    location = Column(String)
    notes = Column(Text)
    reminder_sent = Column(Boolean, default=False)
    status = Column(String, nullable=False, default="pending")  # pending, completed, overdue

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="immunizations")


class CommunityPost(Base):
    __tablename__ = "community_posts"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String)
    content = Column(Text, nullable=False)
    category = Column(String)  # general, pregnancy, postpartum, childcare
    likes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="posts")
    comments = relationship("CommunityComment", back_populates="post", cascade="all, delete-orphan")


class CommunityComment(Base):
    __tablename__ = "community_comments"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    post_id = Column(String, ForeignKey("community_posts.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post = relationship("CommunityPost", back_populates="comments")
    user = relationship("User", back_populates="comments")


def create_tables():
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
