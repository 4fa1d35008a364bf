# studioboard/services/workspace.py
"""
Estado de trabalho por sessão.

Cada sessão autenticada tem um `Workspace` com as coleções buscadas no banco e
o estado de tela (filtro "Minhas", modo quadro/agenda, projeto aberto, mês da
agenda). O registro abre o workspace no login e descarta no logout.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from studioboard.core.config import settings
from studioboard.core.errors import RemoteStoreError
from studioboard.modules.appointments.schemas import AppointmentOut
from studioboard.modules.board.mappers import (
    DEFAULT_COLUMNS,
    attach_project_ids,
    columns_from_rows,
    projects_from_rows,
)
from studioboard.modules.board.reorder import PendingWrite
from studioboard.modules.board.schemas import ColumnOut
from studioboard.modules.clients.schemas import ClientOut
from studioboard.modules.projects.schemas import ProjectOut
from studioboard.modules.users.schemas import UserOut
from studioboard.provider.base import SIGNED_IN, SIGNED_OUT, AuthSession, DataProvider
from studioboard.services.visibility import (
    MASTER_ROLE,
    Access,
    is_master_email,
    resolve_access,
    visible_appointments,
    visible_projects,
)

logger = logging.getLogger(__name__)

MAX_TRACKED_MUTATIONS = 200


@dataclass
class Mutation:
    table: str
    row_id: str
    values: dict
    status: str = "pending"          # pending | confirmed | failed
    error: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Workspace:
    session: AuthSession
    columns: List[ColumnOut] = field(default_factory=list)
    projects: List[ProjectOut] = field(default_factory=list)
    clients: List[ClientOut] = field(default_factory=list)
    users: List[UserOut] = field(default_factory=list)
    appointments: List[AppointmentOut] = field(default_factory=list)
    current_profile: Optional[UserOut] = None
    access: Access = field(default_factory=lambda: Access(role=None, is_master=False, is_approved=False))

    # estado de tela
    filter_mine: bool = False
    view_mode: str = "board"         # board | calendar
    selected_project_id: Optional[str] = None
    calendar_year: Optional[int] = None
    calendar_month: Optional[int] = None

    loaded: bool = False
    mutations: List[Mutation] = field(default_factory=list)

    @property
    def user_id(self) -> str:
        return self.session.user.id

    @property
    def email(self) -> str:
        return self.session.user.email

    # ---------- visões filtradas ----------
    def display_projects(self) -> List[ProjectOut]:
        return visible_projects(self.projects, self.user_id, elevated=self.access.is_master, mine=self.filter_mine)

    def display_appointments(self) -> List[AppointmentOut]:
        return visible_appointments(
            self.appointments, self.user_id, elevated=self.access.is_master, mine=self.filter_mine
        )

    # ---------- merges locais ----------
    def find_project(self, project_id: str) -> Optional[ProjectOut]:
        return next((p for p in self.projects if p.id == project_id), None)

    def find_column(self, column_id: str) -> Optional[ColumnOut]:
        return next((c for c in self.columns if c.id == column_id), None)

    def add_project(self, project: ProjectOut, column_id: Optional[str] = None) -> None:
        self.projects = [*self.projects, project]
        self.columns = [
            c.model_copy(update={"project_ids": [*c.project_ids, project.id]})
            if (c.id == column_id or (column_id is None and c.title == project.stage)) else c
            for c in self.columns
        ]

    def replace_project(self, project: ProjectOut) -> None:
        self.projects = [project if p.id == project.id else p for p in self.projects]

    def remove_project(self, project_id: str) -> None:
        self.projects = [p for p in self.projects if p.id != project_id]
        self.columns = [
            c.model_copy(update={"project_ids": [pid for pid in c.project_ids if pid != project_id]})
            for c in self.columns
        ]
        if self.selected_project_id == project_id:
            self.selected_project_id = None

    def upsert_client(self, client: ClientOut) -> None:
        if any(c.id == client.id for c in self.clients):
            self.clients = [client if c.id == client.id else c for c in self.clients]
        else:
            self.clients = [*self.clients, client]

    def remove_client(self, client_id: str) -> None:
        self.clients = [c for c in self.clients if c.id != client_id]

    def upsert_appointment(self, appointment: AppointmentOut) -> None:
        if any(a.id == appointment.id for a in self.appointments):
            self.appointments = [appointment if a.id == appointment.id else a for a in self.appointments]
        else:
            self.appointments = [*self.appointments, appointment]

    def remove_appointment(self, appointment_id: str) -> None:
        self.appointments = [a for a in self.appointments if a.id != appointment_id]

    def remove_user(self, user_id: str) -> None:
        self.users = [u for u in self.users if u.id != user_id]

    # ---------- gravações otimistas ----------
    def track(self, write: PendingWrite) -> Mutation:
        m = Mutation(table=write.table, row_id=write.row_id, values=dict(write.values))
        self.mutations = [*self.mutations, m][-MAX_TRACKED_MUTATIONS:]
        return m


def resolve_current_profile(users: Iterable[UserOut], session: AuthSession, master_email: str) -> Optional[UserOut]:
    current = next((u for u in users if u.id == session.user.id), None)
    if is_master_email(session.user.email, master_email):
        # perfil Master mesmo que ainda não exista no banco
        base = current or UserOut(id=session.user.id, email=session.user.email)
        return base.model_copy(update={"email": session.user.email, "role": MASTER_ROLE, "approved": True})
    return current


async def fetch_data(provider: DataProvider, ws: Workspace, master_email: Optional[str] = None) -> Workspace:
    """Busca tudo do banco e recalcula as listas derivadas das colunas."""
    master_email = master_email if master_email is not None else settings.MASTER_EMAIL

    column_rows = await provider.select("columns", order="order")
    if column_rows is not None and len(column_rows) == 0:
        column_rows = sorted(await provider.insert("columns", [dict(c) for c in DEFAULT_COLUMNS]), key=lambda r: r["order"])

    # visibilidade global: busca TODOS os registros, o filtro é aplicado na exibição
    project_rows = await provider.select("projects")
    client_rows = await provider.select("clients")
    user_rows = await provider.select("profiles")
    appointment_rows = await provider.select("appointments", order="date")

    if any(rows is None for rows in (column_rows, project_rows, client_rows, user_rows, appointment_rows)):
        raise RemoteStoreError("Dados incompletos retornados do banco.")

    projects = projects_from_rows(project_rows)
    ws.columns = attach_project_ids(columns_from_rows(column_rows), projects)
    ws.projects = projects
    ws.clients = [ClientOut.model_validate(r) for r in client_rows]
    ws.users = [UserOut.model_validate(r) for r in user_rows]
    ws.appointments = [AppointmentOut.model_validate(r) for r in appointment_rows]

    ws.current_profile = resolve_current_profile(ws.users, ws.session, master_email)
    ws.access = resolve_access(ws.current_profile, ws.email, master_email)
    ws.loaded = True
    return ws


async def persist_writes(provider: DataProvider, ws: Workspace, writes: Iterable[PendingWrite]) -> List[Mutation]:
    """
    Dispara as gravações em paralelo, sem ordem nem atomicidade entre elas.
    Falhas ficam registradas na mutação e no log; o estado local não é desfeito.
    """

    async def _one(write: PendingWrite) -> Mutation:
        m = ws.track(write)
        try:
            await provider.update(write.table, write.values, eq={"id": write.row_id})
        except RemoteStoreError as e:
            m.status = "failed"
            m.error = str(e)
            logger.warning(
                f"Optimistic write failed for {write.table}/{write.row_id}: {e}",
                extra={"user_id": ws.user_id},
            )
            return m
        m.status = "confirmed"
        return m

    return list(await asyncio.gather(*(_one(w) for w in writes)))


class WorkspaceRegistry:
    """Workspaces por sessão: abertos no SIGNED_IN, descartados no SIGNED_OUT."""

    def __init__(self, provider: DataProvider, master_email: Optional[str] = None):
        self._provider = provider
        self._master_email = master_email
        self._items: dict[str, Workspace] = {}
        self._subscription = provider.on_auth_state_change(self._on_auth_event)

    async def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if session is None:
            return
        if event == SIGNED_IN:
            await self.open(session)
        elif event == SIGNED_OUT:
            self.close(session)

    async def open(self, session: AuthSession) -> Workspace:
        ws = Workspace(session=session)
        self._items[session.session_id] = ws
        await fetch_data(self._provider, ws, self._master_email)
        return ws

    def get(self, session: AuthSession) -> Optional[Workspace]:
        return self._items.get(session.session_id)

    def ensure(self, session: AuthSession) -> Workspace:
        ws = self._items.get(session.session_id)
        if ws is None:
            ws = self._items[session.session_id] = Workspace(session=session)
        return ws

    async def refresh(self, ws: Workspace) -> Workspace:
        return await fetch_data(self._provider, ws, self._master_email)

    def close(self, session: AuthSession) -> None:
        self._items.pop(session.session_id, None)

    def shutdown(self) -> None:
        self._subscription.unsubscribe()
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
