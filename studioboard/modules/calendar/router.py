from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from studioboard.core.dependencies import get_authorized_workspace
from studioboard.services.workspace import Workspace
from studioboard.utils.tz import get_zone
from .aggregator import month_view, shift_month
from .schemas import CalendarDayOut, CalendarOut

router = APIRouter()


@router.get("", response_model=CalendarOut)
async def get_calendar(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    shift: int = Query(0, description="-1 mês anterior, +1 próximo mês"),
    tz: Optional[str] = Query(None, description="Fuso de quem visualiza (IANA)"),
    ws: Workspace = Depends(get_authorized_workspace),
):
    try:
        zone = get_zone(tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    # cada campo: pedido > guardado na sessão > mês atual
    now = datetime.now(timezone.utc).astimezone(zone)
    current_year = year or ws.calendar_year or now.year
    current_month = month or ws.calendar_month or now.month
    current_year, current_month = shift_month(current_year, current_month, shift)

    ws.calendar_year, ws.calendar_month = current_year, current_month
    view = month_view(current_year, current_month, ws.display_projects(), ws.display_appointments(), zone)

    days = [
        CalendarDayOut(
            day=d,
            is_today=view.today == d,
            projects=view.projects_by_day.get(d, []),
            appointments=view.appointments_by_day.get(d, []),
        )
        for d in range(1, view.days_in_month + 1)
    ]
    return CalendarOut(
        year=view.year,
        month=view.month,
        timezone=zone.key,
        days_in_month=view.days_in_month,
        leading_blanks=view.leading_blanks,
        today=view.today,
        days=days,
    )
