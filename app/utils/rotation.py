from datetime import date
from typing import Dict, List


AGE_GROUP_LABELS = {
    'RK': 'Ranger Kids',
    'DR': 'Discovery Rangers',
    'AR': 'Adventure Rangers',
    'ER': 'Expedition Rangers',
}


def get_age_group_label(age_group: str) -> str:
    return AGE_GROUP_LABELS.get(age_group, age_group)


def get_current_quarter(today: date = None) -> int:
    """Quarter (1-4) of the given or current date"""
    month = (today or date.today()).month
    return (month + 2) // 3


def get_default_rotation_quarter(today: date = None) -> int:
    """
    Forms are usually written after a rotation ends, so default to the
    previous quarter (never below 1).
    """
    return max(1, get_current_quarter(today) - 1)


def format_rotation_label(year: int, quarter: int) -> str:
    return f"{year} Q{quarter}"


def get_rotation_quarter_options() -> List[Dict]:
    months = {1: 'Jan-Mar', 2: 'Apr-Jun', 3: 'Jul-Sep', 4: 'Oct-Dec'}
    return [{'value': q, 'label': f"Rotation {q} (Q{q}: {months[q]})"} for q in range(1, 5)]

