from datetime import date
from typing import Optional

UPCOMING = "upcoming"
ONGOING = "ongoing"
PAST = "past"


def trip_status(start_date: date, end_date: date, today: Optional[date] = None) -> str:
    """Place a trip's date range relative to ``today``.

    A trip that starts today is already ongoing; one that ended yesterday is past.
    """
    today = today or date.today()
    if start_date > today:
        return UPCOMING
    if end_date < today:
        return PAST
    return ONGOING
