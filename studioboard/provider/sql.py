# studioboard/provider/sql.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studioboard.core.errors import AuthError, RemoteStoreError, SchemaMismatchError, classify_remote_error
from studioboard.core.security import hash_password, verify_password, new_reset_token
from studioboard.db.base import Base, new_id
from studioboard.modules.appointments.models import Appointment
from studioboard.modules.board.models import BoardColumn
from studioboard.modules.clients.models import Client
from studioboard.modules.projects.models import Project
from studioboard.modules.users.models import Credential, Profile
from .base import AuthUser, DataProvider, Row

MODELS: dict[str, type[Base]] = {
    "columns": BoardColumn,
    "projects": Project,
    "clients": Client,
    "profiles": Profile,
    "appointments": Appointment,
}

# colunas de auditoria ficam fora das linhas devolvidas
_HIDDEN = {"created_at", "updated_at"}

_PROFILE_FIELDS = ("name", "cpf", "phone", "role", "approved")


def _row(obj: Base) -> Row:
    return {c.key: getattr(obj, c.key) for c in obj.__table__.columns if c.key not in _HIDDEN}


class SqlProvider(DataProvider):
    """
    Provedor sobre o Postgres hospedado (ou SQLite local) via SQLAlchemy async.
    Cada chamada abre a própria sessão: chamadas independentes podem rodar em paralelo.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], **kwargs: Any):
        super().__init__(**kwargs)
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _db(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as db:
                yield db
        except RemoteStoreError:
            raise
        except (SQLAlchemyError, OSError) as e:
            raise classify_remote_error(e) from e

    def _model(self, table: str) -> type[Base]:
        model = MODELS.get(table)
        if model is None:
            raise SchemaMismatchError(f'relation "{table}" does not exist', code="42P01")
        return model

    def _check_columns(self, model: type[Base], names) -> None:
        known = set(model.__table__.columns.keys())
        for name in names:
            if name not in known:
                raise SchemaMismatchError(
                    f'column "{name}" of relation "{model.__tablename__}" does not exist',
                    code="42703",
                )

    def _where(self, model: type[Base], stmt, eq: Optional[dict[str, Any]]):
        eq = eq or {}
        self._check_columns(model, eq.keys())
        for key, value in eq.items():
            stmt = stmt.where(getattr(model, key) == value)
        return stmt

    # ------------------------ tabelas ------------------------
    async def select(self, table, *, eq=None, order=None, ascending=True):
        model = self._model(table)
        stmt = self._where(model, select(model), eq)
        if order:
            self._check_columns(model, [order])
            col = getattr(model, order)
            stmt = stmt.order_by(col.asc() if ascending else col.desc())
        async with self._db() as db:
            rows = (await db.execute(stmt)).scalars().all()
            return [_row(r) for r in rows]

    async def insert(self, table, rows):
        model = self._model(table)
        for row in rows:
            self._check_columns(model, row.keys())
        async with self._db() as db:
            objs = [model(**{"id": new_id(), **row}) for row in rows]
            db.add_all(objs)
            await db.commit()
            return [_row(o) for o in objs]

    async def update(self, table, values, *, eq):
        model = self._model(table)
        self._check_columns(model, values.keys())
        stmt = self._where(model, select(model), eq)
        async with self._db() as db:
            objs = (await db.execute(stmt)).scalars().all()
            for obj in objs:
                for key, value in values.items():
                    setattr(obj, key, value)
            await db.commit()
            return [_row(o) for o in objs]

    async def upsert(self, table, row):
        model = self._model(table)
        self._check_columns(model, row.keys())
        async with self._db() as db:
            obj = await db.get(model, row["id"]) if row.get("id") else None
            if obj is None:
                obj = model(**{"id": new_id(), **row})
                db.add(obj)
            else:
                for key, value in row.items():
                    setattr(obj, key, value)
            await db.commit()
            return _row(obj)

    async def delete(self, table, *, eq):
        model = self._model(table)
        if not eq:
            # igual ao PostgREST: delete sem filtro é recusado
            raise RemoteStoreError("DELETE requires a WHERE clause", code="21000")
        stmt = self._where(model, delete(model), eq)
        async with self._db() as db:
            res = await db.execute(stmt)
            await db.commit()
            return int(res.rowcount or 0)

    async def count(self, table):
        model = self._model(table)
        async with self._db() as db:
            return int(await db.scalar(select(func.count()).select_from(model)) or 0)

    # ------------------------ credenciais ------------------------
    async def _authenticate(self, email, password):
        async with self._db() as db:
            cred = await db.scalar(select(Credential).where(Credential.email == email))
            if not cred or not verify_password(password, cred.password_hash):
                return None
            profile = await db.get(Profile, cred.user_id)
            meta = {k: getattr(profile, k) for k in _PROFILE_FIELDS} if profile else {}
            return AuthUser(id=cred.user_id, email=cred.email, user_metadata=meta)

    async def _create_account(self, email, password, metadata):
        async with self._db() as db:
            exists = await db.scalar(select(Credential).where(Credential.email == email))
            if exists:
                raise AuthError("User already registered")

            profile = await db.scalar(select(Profile).where(Profile.email == email))
            if profile is None:
                profile = Profile(id=new_id(), email=email)
                db.add(profile)
            for key in _PROFILE_FIELDS:
                if key in metadata and metadata[key] is not None:
                    setattr(profile, key, metadata[key])
            await db.flush()

            db.add(Credential(user_id=profile.id, email=email, password_hash=hash_password(password)))
            try:
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                raise AuthError("Database error saving new user", details=str(e)) from e
            return AuthUser(id=profile.id, email=email, user_metadata=dict(metadata))

    async def _store_reset_token(self, email):
        async with self._db() as db:
            cred = await db.scalar(select(Credential).where(Credential.email == email))
            if not cred:
                return None
            cred.reset_token = new_reset_token()
            cred.reset_requested_at = datetime.now(timezone.utc)
            token = cred.reset_token
            await db.commit()
            return token
