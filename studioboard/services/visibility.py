# studioboard/services/visibility.py
"""
Papéis e filtro de visibilidade ("Todos" x "Minhas").

O filtro é só conveniência de exibição: as coleções completas já foram
buscadas, quem realmente separa os dados é a segurança do banco (RLS).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, TypeVar

from studioboard.modules.appointments.schemas import AppointmentOut
from studioboard.modules.projects.schemas import ProjectOut
from studioboard.modules.users.schemas import UserOut

logger = logging.getLogger(__name__)

MASTER_ROLE = "Master"
FREE_ROLE = "Free"

T = TypeVar("T")


@dataclass(frozen=True)
class Access:
    role: Optional[str]
    is_master: bool
    is_approved: bool
    via_override: bool = False


def is_master_email(email: Optional[str], master_email: Optional[str]) -> bool:
    return bool(email and master_email and email.strip().lower() == master_email.strip().lower())


def resolve_access(profile: Optional[UserOut], session_email: Optional[str], master_email: Optional[str]) -> Access:
    """
    Resolve papel e aprovação. O e-mail Master (configurado no servidor) e a
    flag `is_superuser` do perfil valem como Master aprovado, independente do
    `role` gravado.
    """
    if is_master_email(session_email, master_email):
        logger.info("Master override applied", extra={"email": session_email})
        return Access(role=MASTER_ROLE, is_master=True, is_approved=True, via_override=True)

    if profile is not None and profile.is_superuser:
        return Access(role=MASTER_ROLE, is_master=True, is_approved=True)

    role = profile.role if profile else None
    return Access(
        role=role,
        is_master=role == MASTER_ROLE,
        is_approved=bool(profile and profile.approved),
    )


def _restrict(items: Iterable[T], keep) -> List[T]:
    return [item for item in items if keep(item)]


def visible_projects(projects: Iterable[ProjectOut], user_id: str, *, elevated: bool, mine: bool) -> List[ProjectOut]:
    projects = list(projects)
    # só o papel elevado consegue desligar a restrição
    if elevated and not mine:
        return projects
    return _restrict(projects, lambda p: p.owner_id == user_id or user_id in (p.responsible_user_ids or []))


def visible_appointments(
    appointments: Iterable[AppointmentOut], user_id: str, *, elevated: bool, mine: bool
) -> List[AppointmentOut]:
    appointments = list(appointments)
    if elevated and not mine:
        return appointments
    return _restrict(appointments, lambda a: a.user_id == user_id)
