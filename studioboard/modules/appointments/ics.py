# studioboard/modules/appointments/ics.py
"""
Leitura de arquivos .ics (iCalendar) para importar compromissos.

Só o necessário para a agenda: blocos VEVENT com SUMMARY, DESCRIPTION e
DTSTART. DTSTART pode ser data pura (20240115), data-hora UTC
(20240115T140000Z) ou data-hora sem fuso (interpretada no fuso informado).
Blocos sem título ou sem início válido são ignorados; propriedades de
subcomponentes (VALARM) não se misturam com as do evento.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .schemas import ImportedEvent

logger = logging.getLogger(__name__)


@dataclass
class IcsParseResult:
    events: List[ImportedEvent]
    skipped: int


def unfold_lines(content: str) -> List[str]:
    # RFC 5545: linha que começa com espaço/tab continua a anterior
    lines: List[str] = []
    for raw in content.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        else:
            lines.append(raw)
    return lines


def unescape_text(value: str) -> str:
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append("\n" if nxt in "nN" else nxt)
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out).strip()


def split_property(line: str) -> Tuple[str, dict, str]:
    """'DTSTART;TZID=America/Sao_Paulo:20240115T090000' -> (nome, params, valor)."""
    head, _, value = line.partition(":")
    name, *raw_params = head.split(";")
    params = {}
    for p in raw_params:
        key, _, val = p.partition("=")
        params[key.strip().upper()] = val.strip().strip('"')
    return name.strip().upper(), params, value.strip()


def parse_dtstart(value: str, params: dict, tz: ZoneInfo) -> Optional[datetime]:
    if not value:
        return None

    zone = tz
    if params.get("TZID"):
        try:
            zone = ZoneInfo(params["TZID"])
        except (ZoneInfoNotFoundError, ValueError):
            zone = tz

    try:
        if value.endswith("Z"):
            return datetime.strptime(value, "%Y%m%dT%H%M%SZ").replace(tzinfo=timezone.utc)
        if "T" in value:
            fmt = "%Y%m%dT%H%M%S" if len(value) == 15 else "%Y%m%dT%H%M"
            return datetime.strptime(value, fmt).replace(tzinfo=zone).astimezone(timezone.utc)
        # data pura: meia-noite local do dia
        day = datetime.strptime(value, "%Y%m%d").date()
        return datetime.combine(day, time.min, tzinfo=zone).astimezone(timezone.utc)
    except ValueError:
        return None


def parse_ics(content: str, tz: ZoneInfo) -> IcsParseResult:
    events: List[ImportedEvent] = []
    skipped = 0
    current: Optional[dict] = None
    # componentes abertos dentro do VEVENT atual (VALARM etc.)
    nested: List[str] = []

    for line in unfold_lines(content):
        if not line.strip():
            continue
        name, params, value = split_property(line)
        component = value.upper()

        if name == "BEGIN":
            if component == "VEVENT" and current is None:
                current = {}
                nested = []
            elif current is not None:
                nested.append(component)
            continue
        if name == "END":
            if current is not None and component in nested:
                del nested[len(nested) - 1 - nested[::-1].index(component):]
                continue
            if component == "VEVENT" and current is not None:
                event = _build_event(current, tz)
                if event is None:
                    skipped += 1
                else:
                    events.append(event)
                current = None
            continue
        if current is None or nested:
            continue

        if name == "SUMMARY":
            current["summary"] = unescape_text(value)
        elif name == "DESCRIPTION":
            current["description"] = unescape_text(value)
        elif name == "DTSTART":
            current["dtstart"] = (value, params)

    # bloco sem END:VEVENT também é descartado
    if current is not None:
        skipped += 1
    return IcsParseResult(events=events, skipped=skipped)


def _build_event(block: dict, tz: ZoneInfo) -> Optional[ImportedEvent]:
    summary = block.get("summary")
    raw_start = block.get("dtstart")
    start = parse_dtstart(*raw_start, tz) if raw_start else None
    if not summary or start is None:
        logger.debug("Skipping VEVENT block", extra={"summary": summary, "dtstart": raw_start})
        return None
    return ImportedEvent(title=summary, date=start, description=block.get("description", ""))
