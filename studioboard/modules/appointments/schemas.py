from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    # SQLite devolve datetime "naive": o que gravamos é sempre UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AppointmentOut(BaseModel):
    id: str
    title: str
    date: datetime
    description: Optional[str] = None
    user_id: str

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, v: datetime) -> datetime:
        return _as_utc(v)

    class Config:
        from_attributes = True


class AppointmentIn(BaseModel):
    """Formulário: data e hora separadas, combinadas no fuso de quem agenda."""
    title: str = ""
    day: Optional[date] = None
    hour: Optional[time] = None
    description: Optional[str] = None
    tz: Optional[str] = None


class ImportedEvent(BaseModel):
    title: str
    date: datetime
    description: str = ""


class IcsImportIn(BaseModel):
    content: str
    tz: Optional[str] = None
    confirm: bool = False


class IcsPreviewOut(BaseModel):
    events: List[ImportedEvent]
    skipped: int = Field(0, ge=0)
