"""
Pregnancy calendar helpers.

Small date calculations shared by the dashboard and immunization endpoints:
gestational age from the last menstrual period (LMP), estimated due date, and
the status an immunization should be shown with today.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, Optional

# Naegele's rule: 40 weeks from LMP
GESTATION_DAYS = 280


def weeks_from_lmp(lmp: date, today: Optional[date] = None) -> Optional[int]:
    """Whole weeks elapsed since the LMP, or None if the LMP is in the future."""
    today = today or date.today()
    elapsed = (today - lmp).days
    if elapsed < 0:
        return None
    return elapsed // 7


def estimated_due_date(lmp: date) -> date:
    return lmp + timedelta(days=GESTATION_DAYS)


def trimester(weeks: Optional[int]) -> Optional[int]:
    if weeks is None:
        return None
    if weeks < 13:
        return 1
    if weeks < 28:
        return 2
    return 3


def effective_immunization_status(status: str, scheduled_date: date, today: Optional[date] = None) -> str:
    """
    Status to report for an immunization.

    A pending shot whose scheduled date has passed is overdue even if the
    stored status was never updated.
    """
    today = today or date.today()
    if status == "pending" and scheduled_date < today:
        return "overdue"
    return status


def summarize_immunizations(immunizations: Iterable, today: Optional[date] = None) -> Dict[str, int]:
    """
    Count immunizations by the status they are shown with today.

    Each item needs ``status`` and ``scheduled_date`` attributes.
    """
    today = today or date.today()
    counts = {"upcoming": 0, "completed": 0, "overdue": 0}
    for item in immunizations:
        shown = effective_immunization_status(item.status, item.scheduled_date, today)
        if shown == "completed":
            counts["completed"] += 1
        elif shown == "overdue":
            counts["overdue"] += 1
        else:
            counts["upcoming"] += 1
    counts["total"] = sum(counts.values())
    return counts
