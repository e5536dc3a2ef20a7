"""Derived patient values shown on cards and detail pages"""

from datetime import date
from typing import Iterable, Optional


def exam_progress(checked: Optional[Iterable[str]], required: Iterable[str]) -> dict:
    """
    Compare the patient's checked exams against the required list.

    With no required exams nothing is pending and nothing counts as "all checked".
    """
    checked_set = set(checked or [])
    required_list = list(required)

    done = [exam for exam in required_list if exam in checked_set]
    all_checked = bool(required_list) and len(done) == len(required_list)

    return {
        "checked": len(done),
        "required": len(required_list),
        "all_checked": all_checked,
        "pending": bool(required_list) and not all_checked,
    }


def calculate_age(birth_date: Optional[date], today: date) -> Optional[int]:
    if not birth_date:
        return None
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age
