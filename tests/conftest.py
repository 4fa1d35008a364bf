"""
Pytest fixtures: provedor em memória no lugar do banco remoto e app montado
com ele.
"""

import copy
import uuid
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from studioboard.core.config import settings
from studioboard.core.errors import AuthError, RemoteStoreError, SchemaMismatchError
from studioboard.integrations.gemini_client import GeminiClient
from studioboard.main import create_application
from studioboard.provider.base import TABLES, AuthUser, DataProvider

GEMINI_BASE = "https://gemini.test/v1beta"
PASSWORD = "segredo123"


class MemoryProvider(DataProvider):
    """Provedor de teste: tabelas como listas de dicts, credenciais em dict."""

    def __init__(self):
        super().__init__(secret_key="test-secret", token_minutes=60)
        self.tables: dict[str, list[dict]] = {t: [] for t in TABLES}
        self.credentials: dict[str, tuple[str, str]] = {}   # email -> (user_id, senha)
        self.reset_requests: list[str] = []
        self.fail_updates: Optional[RemoteStoreError] = None
        self.fail_selects: Optional[RemoteStoreError] = None

    def _table(self, table: str) -> list[dict]:
        if table not in self.tables:
            raise SchemaMismatchError(f'relation "{table}" does not exist', code="42P01")
        return self.tables[table]

    @staticmethod
    def _match(row: dict, eq: Optional[dict]) -> bool:
        return all(row.get(k) == v for k, v in (eq or {}).items())

    async def select(self, table, *, eq=None, order=None, ascending=True):
        if self.fail_selects is not None:
            raise self.fail_selects
        rows = [copy.deepcopy(r) for r in self._table(table) if self._match(r, eq)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=not ascending)
        return rows

    async def insert(self, table, rows):
        out = []
        for row in rows:
            stored = {"id": str(uuid.uuid4()), **copy.deepcopy(row)}
            self._table(table).append(stored)
            out.append(copy.deepcopy(stored))
        return out

    async def update(self, table, values, *, eq):
        if self.fail_updates is not None:
            raise self.fail_updates
        out = []
        for row in self._table(table):
            if self._match(row, eq):
                row.update(copy.deepcopy(values))
                out.append(copy.deepcopy(row))
        return out

    async def upsert(self, table, row):
        for existing in self._table(table):
            if existing["id"] == row.get("id"):
                existing.update(copy.deepcopy(row))
                return copy.deepcopy(existing)
        return (await self.insert(table, [row]))[0]

    async def delete(self, table, *, eq):
        if not eq:
            raise RemoteStoreError("DELETE requires a WHERE clause", code="21000")
        before = len(self._table(table))
        self.tables[table] = [r for r in self._table(table) if not self._match(r, eq)]
        return before - len(self.tables[table])

    async def count(self, table):
        return len(self._table(table))

    async def _authenticate(self, email, password):
        found = self.credentials.get(email)
        if not found or found[1] != password:
            return None
        return AuthUser(id=found[0], email=email)

    async def _create_account(self, email, password, metadata):
        if email in self.credentials:
            raise AuthError("User already registered")
        return AuthUser(id=self.add_user(email, password=password, **metadata), email=email, user_metadata=metadata)

    async def _store_reset_token(self, email):
        if email not in self.credentials:
            return None
        self.reset_requests.append(email)
        return "reset-token"

    # ---------- apoio aos testes ----------
    def add_user(
        self,
        email: str,
        *,
        password: str = PASSWORD,
        name: Optional[str] = None,
        role: str = "Free",
        approved: bool = True,
        **extra: Any,
    ) -> str:
        user_id = str(uuid.uuid4())
        self.credentials[email] = (user_id, password)
        self.tables["profiles"].append({
            "id": user_id,
            "email": email,
            "name": name or email.split("@")[0],
            "phone": extra.get("phone"),
            "cpf": extra.get("cpf"),
            "role": role,
            "approved": approved,
            "is_superuser": extra.get("is_superuser", False),
        })
        return user_id


@pytest.fixture
def provider():
    return MemoryProvider()


@pytest.fixture
def gemini():
    return GeminiClient(
        api_key="test-key",
        base_url=GEMINI_BASE,
        text_model="gemini-text",
        image_model="gemini-image",
        timeout=5,
    )


@pytest.fixture
def client(provider, gemini):
    app = create_application(provider=provider, gemini=gemini)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    """Faz login e devolve os headers com o bearer token."""

    def _login(email: str, password: str = PASSWORD) -> dict:
        r = client.post(f"{settings.API_V1_PREFIX}/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login


@pytest.fixture
def master_headers(provider, login):
    provider.add_user(settings.MASTER_EMAIL, name="Daniel", role="Free", approved=False)
    return login(settings.MASTER_EMAIL)


def api(path: str) -> str:
    return f"{settings.API_V1_PREFIX}{path}"
