"""
Agrupamento da agenda por dia do mês exibido.

Projetos entram pelo prazo (`end_date`), compromissos pela data/hora local de
quem visualiza. Nada é cacheado: cada navegação recalcula os grupos.
"""
from __future__ import annotations

import calendar as _calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from studioboard.modules.appointments.schemas import AppointmentOut
from studioboard.modules.projects.schemas import ProjectOut


@dataclass
class MonthView:
    year: int
    month: int
    days_in_month: int
    leading_blanks: int                     # dias vazios antes do dia 1 (domingo = 0)
    today: Optional[int]
    projects_by_day: Dict[int, List[ProjectOut]] = field(default_factory=dict)
    appointments_by_day: Dict[int, List[AppointmentOut]] = field(default_factory=dict)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def deadline_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    """
    Dia do prazo. Data pura é o próprio dia; data-hora usa o dia em UTC
    (equivale a corrigir o fuso de quem visualiza antes de ler o dia).
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00")) if "T" in value else date.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def bucket_projects(projects: Iterable[ProjectOut], year: int, month: int) -> Dict[int, List[ProjectOut]]:
    grouped: Dict[int, List[ProjectOut]] = {}
    for project in projects:
        deadline = deadline_date(project.end_date)
        # sem prazo não aparece na agenda (continua no quadro)
        if deadline is None:
            continue
        if deadline.year == year and deadline.month == month:
            grouped.setdefault(deadline.day, []).append(project)
    return grouped


def bucket_appointments(
    appointments: Iterable[AppointmentOut], year: int, month: int, tz: ZoneInfo
) -> Dict[int, List[AppointmentOut]]:
    grouped: Dict[int, List[AppointmentOut]] = {}
    for app in appointments:
        when = app.date if app.date.tzinfo else app.date.replace(tzinfo=timezone.utc)
        local = when.astimezone(tz)
        if local.year == year and local.month == month:
            grouped.setdefault(local.day, []).append(app)
    return grouped


def month_view(
    year: int,
    month: int,
    projects: Iterable[ProjectOut],
    appointments: Iterable[AppointmentOut],
    tz: ZoneInfo,
    now: Optional[datetime] = None,
) -> MonthView:
    # calendar.monthrange: segunda = 0; a grade começa no domingo
    first_weekday, days = _calendar.monthrange(year, month)
    local_now = (now or datetime.now(timezone.utc)).astimezone(tz)
    return MonthView(
        year=year,
        month=month,
        days_in_month=days,
        leading_blanks=(first_weekday + 1) % 7,
        today=local_now.day if (local_now.year, local_now.month) == (year, month) else None,
        projects_by_day=bucket_projects(projects, year, month),
        appointments_by_day=bucket_appointments(appointments, year, month, tz),
    )
