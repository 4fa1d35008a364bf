# studioboard/utils/tz.py
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from studioboard.core.config import settings


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    """Fuso de quem visualiza; sem nome usa DEFAULT_TIMEZONE. Nome inválido -> ValueError."""
    try:
        return ZoneInfo((name or "").strip() or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Fuso horário inválido: {name}") from e
