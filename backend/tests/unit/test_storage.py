"""
Unit tests for the Storage layer.

Tests:
- Ordering of list queries
- Owner scoping on read, update and delete
- Upcoming appointment selection for the dashboard
- Community feed comment counts and atomic likes
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from storage import Storage
from risk_scoring import RiskObservation, score_risk


def _appointment(**overrides):
    data = {
        "doctor_name": "Dr. Adeyemi",
        "appointment_date": datetime.utcnow() + timedelta(days=3),
        "appointment_type": "routine",
        "location": "City Maternity Clinic",
        "status": "scheduled",
    }
    data.update(overrides)
    return data


class TestUsers:

    def test_create_and_lookup(self, test_db):
        storage = Storage(test_db)
        user = storage.create_user(email="new@example.com", first_name="Nia")

        assert storage.get_user(user.id).email == "new@example.com"
        assert storage.get_user_by_email("new@example.com").id == user.id
        assert user.hashed_password is None

    def test_update_sets_updated_at(self, test_db, test_user):
        before = test_user.updated_at
        user = Storage(test_db).update_user(test_user, {"pregnancy_weeks": 22})

        assert user.pregnancy_weeks == 22
        assert user.updated_at >= before


class TestAppointments:

    def test_list_newest_first(self, test_db, test_user):
        storage = Storage(test_db)
        early = storage.create_anc_appointment(test_user.id, _appointment(
            appointment_date=datetime(2024, 3, 1, 10, 0)
        ))
        late = storage.create_anc_appointment(test_user.id, _appointment(
            appointment_date=datetime(2024, 5, 1, 10, 0)
        ))

        listed = storage.get_user_anc_appointments(test_user.id)
        assert [a.id for a in listed] == [late.id, early.id]

    def test_foreign_appointment_is_not_found(self, test_db, sample_appointment, other_user):
        storage = Storage(test_db)

        assert storage.get_anc_appointment(sample_appointment.id, other_user.id) is None
        assert storage.update_anc_appointment(sample_appointment.id, other_user.id, {"status": "cancelled"}) is None
        assert storage.delete_anc_appointment(sample_appointment.id, other_user.id) is False

    def test_update_and_delete_own(self, test_db, test_user, sample_appointment):
        storage = Storage(test_db)

        updated = storage.update_anc_appointment(sample_appointment.id, test_user.id, {"status": "completed"})
        assert updated.status == "completed"

        assert storage.delete_anc_appointment(sample_appointment.id, test_user.id) is True
        assert storage.get_anc_appointment(sample_appointment.id, test_user.id) is None

    def test_upcoming_skips_past_and_unscheduled(self, test_db, test_user):
        storage = Storage(test_db)
        now = datetime(2024, 6, 1, 12, 0)
        storage.create_anc_appointment(test_user.id, _appointment(appointment_date=now - timedelta(days=1)))
        storage.create_anc_appointment(test_user.id, _appointment(
            appointment_date=now + timedelta(days=1), status="cancelled"
        ))
        third = storage.create_anc_appointment(test_user.id, _appointment(appointment_date=now + timedelta(days=20)))
        first = storage.create_anc_appointment(test_user.id, _appointment(appointment_date=now + timedelta(days=2)))
        second = storage.create_anc_appointment(test_user.id, _appointment(appointment_date=now + timedelta(days=9)))

        upcoming = storage.get_upcoming_anc_appointments(test_user.id, now=now, limit=2)
        assert [a.id for a in upcoming] == [first.id, second.id]
        assert third.id not in [a.id for a in upcoming]

    def test_write_failure_rolls_back(self, test_db, test_user):
        storage = Storage(test_db)

        with patch.object(test_db, "commit", side_effect=SQLAlchemyError("disk full")):
            with pytest.raises(SQLAlchemyError):
                storage.create_anc_appointment(test_user.id, _appointment())

        assert storage.get_user_anc_appointments(test_user.id) == []


class TestRiskAssessments:

    def test_stores_computed_classification(self, test_db, test_user):
        observation = RiskObservation(blood_pressure="140/90", pregnancy_weeks=20)
        assessment = Storage(test_db).create_risk_assessment(
            test_user.id, observation, score_risk(observation)
        )

        assert assessment.risk_level == "high"
        assert assessment.risk_factors == ["High blood pressure"]
        assert assessment.blood_pressure == "140/90"

    def test_latest_is_most_recent(self, test_db, test_user):
        storage = Storage(test_db)
        low = RiskObservation()
        high = RiskObservation(symptoms="bleeding")
        storage.create_risk_assessment(test_user.id, low, score_risk(low))
        latest = storage.create_risk_assessment(test_user.id, high, score_risk(high))
        latest.assessment_date = datetime.utcnow() + timedelta(seconds=1)
        test_db.commit()

        assert storage.get_latest_risk_assessment(test_user.id).id == latest.id
        assert len(storage.get_user_risk_assessments(test_user.id)) == 2

    def test_history_newest_first(self, test_db, test_user):
        storage = Storage(test_db)
        observation = RiskObservation()
        march, may, april = (
            storage.create_risk_assessment(test_user.id, observation, score_risk(observation))
            for _ in range(3)
        )
        march.assessment_date = datetime(2024, 3, 1)
        may.assessment_date = datetime(2024, 5, 1)
        april.assessment_date = datetime(2024, 4, 1)
        test_db.commit()

        history = storage.get_user_risk_assessments(test_user.id)

        assert [a.id for a in history] == [may.id, april.id, march.id]
        assert storage.get_latest_risk_assessment(test_user.id).id == may.id

    def test_latest_is_none_without_history(self, test_db, test_user):
        assert Storage(test_db).get_latest_risk_assessment(test_user.id) is None


class TestImmunizations:

    def test_list_by_scheduled_date_desc(self, test_db, test_user, sample_immunizations):
        listed = Storage(test_db).get_user_immunizations(test_user.id)
        dates = [item.scheduled_date for item in listed]

        assert dates == sorted(dates, reverse=True)

    def test_foreign_immunization_cannot_be_deleted(self, test_db, other_user, sample_immunizations):
        assert Storage(test_db).delete_immunization(sample_immunizations[0].id, other_user.id) is False


class TestCommunity:

    def test_feed_includes_comment_counts(self, test_db, test_user, sample_post, sample_comment):
        storage = Storage(test_db)
        quiet = storage.create_community_post(test_user.id, {"content": "No replies yet"})
        quiet.created_at = sample_post.created_at + timedelta(minutes=5)
        test_db.commit()

        feed = storage.get_community_posts(limit=10, offset=0)
        assert [(post.id, count) for post, count in feed] == [(quiet.id, 0), (sample_post.id, 1)]
        assert feed[1][0].user.first_name == "Grace"

    def test_feed_pagination(self, test_db, test_user):
        storage = Storage(test_db)
        for i in range(3):
            storage.create_community_post(test_user.id, {"content": f"post {i}"})

        assert len(storage.get_community_posts(limit=2, offset=0)) == 2
        assert len(storage.get_community_posts(limit=2, offset=2)) == 1

    def test_like_increments(self, test_db, sample_post):
        storage = Storage(test_db)
        storage.like_community_post(sample_post.id)
        post = storage.like_community_post(sample_post.id)

        assert post.likes == 2

    def test_like_unknown_post(self, test_db):
        assert Storage(test_db).like_community_post("missing") is None

    def test_comments_newest_first(self, test_db, test_user, sample_post, sample_comment):
        storage = Storage(test_db)
        newer = storage.create_community_comment(sample_post.id, test_user.id, {"content": "Also try a warm bath"})
        newer.created_at = sample_comment.created_at + timedelta(minutes=1)
        test_db.commit()

        comments = storage.get_post_comments(sample_post.id)
        assert [c.id for c in comments] == [newer.id, sample_comment.id]
        assert comments[0].user.email == test_user.email

    def test_user_posts(self, test_db, other_user, sample_post):
        posts = Storage(test_db).get_user_community_posts(other_user.id)
        assert [p.id for p in posts] == [sample_post.id]
