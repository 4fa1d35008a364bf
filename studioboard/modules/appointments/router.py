from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from studioboard.core.dependencies import get_authorized_workspace, get_provider, remote_http_error
from studioboard.core.errors import RemoteStoreError
from studioboard.provider.base import DataProvider
from studioboard.services.workspace import Workspace
from studioboard.utils.tz import get_zone
from .ics import parse_ics
from .schemas import AppointmentIn, AppointmentOut, IcsImportIn, IcsPreviewOut

router = APIRouter()


def _zone_or_400(name):
    try:
        return get_zone(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _form_values(payload: AppointmentIn) -> dict:
    if not payload.title.strip() or payload.day is None or payload.hour is None:
        raise HTTPException(status_code=400, detail="Preencha título, data e hora.")
    tz = _zone_or_400(payload.tz)
    # data + hora no fuso de quem agenda, gravado em UTC
    when = datetime.combine(payload.day, payload.hour, tzinfo=tz).astimezone(timezone.utc)
    return {"title": payload.title.strip(), "date": when, "description": payload.description or ""}


def _get_appointment_or_404(ws: Workspace, appointment_id: str) -> AppointmentOut:
    found = next((a for a in ws.appointments if a.id == appointment_id), None)
    if not found:
        raise HTTPException(status_code=404, detail="Compromisso não encontrado")
    return found


def _sorted(items: List[AppointmentOut]) -> List[AppointmentOut]:
    return sorted(items, key=lambda a: a.date)


@router.get("", response_model=List[AppointmentOut])
async def list_appointments(ws: Workspace = Depends(get_authorized_workspace)):
    return _sorted(ws.display_appointments())


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentIn,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    values = _form_values(payload)
    try:
        rows = await provider.insert("appointments", [{**values, "user_id": ws.user_id}])
    except RemoteStoreError as e:
        raise remote_http_error(e) from e

    appointment = AppointmentOut.model_validate(rows[0])
    ws.upsert_appointment(appointment)
    ws.appointments = _sorted(ws.appointments)
    return appointment


@router.put("/{appointment_id}", response_model=AppointmentOut)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentIn,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    _get_appointment_or_404(ws, appointment_id)
    values = _form_values(payload)
    try:
        rows = await provider.update("appointments", values, eq={"id": appointment_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    if not rows:
        raise HTTPException(status_code=404, detail="Compromisso não encontrado")

    appointment = AppointmentOut.model_validate(rows[0])
    ws.upsert_appointment(appointment)
    ws.appointments = _sorted(ws.appointments)
    return appointment


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    confirm: bool = Query(False),
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    _get_appointment_or_404(ws, appointment_id)
    if not confirm:
        raise HTTPException(status_code=400, detail="Tem certeza que deseja excluir este compromisso?")
    try:
        await provider.delete("appointments", eq={"id": appointment_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    ws.remove_appointment(appointment_id)
    return None


# =============== IMPORTAÇÃO .ics ===============
@router.post("/import/preview", response_model=IcsPreviewOut)
async def preview_import(payload: IcsImportIn, ws: Workspace = Depends(get_authorized_workspace)):
    result = parse_ics(payload.content, _zone_or_400(payload.tz))
    return IcsPreviewOut(events=result.events, skipped=result.skipped)


@router.post("/import", response_model=List[AppointmentOut], status_code=status.HTTP_201_CREATED)
async def import_appointments(
    payload: IcsImportIn,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    if not payload.confirm:
        raise HTTPException(status_code=400, detail="Confirme a importação dos eventos.")
    result = parse_ics(payload.content, _zone_or_400(payload.tz))
    if not result.events:
        raise HTTPException(status_code=400, detail="Nenhum evento válido encontrado no arquivo.")

    rows = [
        {"title": ev.title, "date": ev.date, "description": ev.description, "user_id": ws.user_id}
        for ev in result.events
    ]
    try:
        created = await provider.insert("appointments", rows)
    except RemoteStoreError as e:
        raise remote_http_error(e) from e

    appointments = [AppointmentOut.model_validate(r) for r in created]
    ws.appointments = _sorted([*ws.appointments, *appointments])
    return appointments
