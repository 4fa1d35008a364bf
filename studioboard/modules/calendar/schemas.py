from typing import List, Optional

from pydantic import BaseModel

from studioboard.modules.appointments.schemas import AppointmentOut
from studioboard.modules.projects.schemas import ProjectOut


class CalendarDayOut(BaseModel):
    day: int
    is_today: bool = False
    projects: List[ProjectOut] = []
    appointments: List[AppointmentOut] = []


class CalendarOut(BaseModel):
    year: int
    month: int
    timezone: str
    days_in_month: int
    leading_blanks: int
    today: Optional[int] = None
    days: List[CalendarDayOut]
