from datetime import date, datetime, timezone

import pytest
from sqlalchemy import event

from studioboard.core.errors import AuthError, RemoteStoreError, SchemaMismatchError
from studioboard.db.base import Base
from studioboard.db.session import build_engine, build_sessionmaker
from studioboard.provider.sql import SqlProvider


@pytest.fixture
async def sql_provider(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{(tmp_path / 'board.db').as_posix()}")

    # SQLite só aplica FKs com o pragma; deixa o comportamento igual ao Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def _foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SqlProvider(build_sessionmaker(engine), secret_key="test-secret", token_minutes=5)
    await engine.dispose()


async def test_insert_select_update_delete(sql_provider):
    rows = await sql_provider.insert("columns", [{"title": "Edição", "order": 1}, {"title": "Ideias", "order": 0}])
    assert all(r["id"] for r in rows)
    assert "created_at" not in rows[0]

    ordered = await sql_provider.select("columns", order="order")
    assert [r["title"] for r in ordered] == ["Ideias", "Edição"]

    updated = await sql_provider.update("columns", {"order": 5}, eq={"title": "Ideias"})
    assert updated[0]["order"] == 5
    assert await sql_provider.update("columns", {"order": 1}, eq={"id": "missing"}) == []

    assert await sql_provider.delete("columns", eq={"title": "Edição"}) == 1
    assert await sql_provider.count("columns") == 1


async def test_json_and_date_columns_round_trip(sql_provider):
    [row] = await sql_provider.insert("projects", [{
        "title": "Institucional",
        "stage": "Ideias",
        "owner_id": "u1",
        "end_date": date(2024, 2, 10),
        "responsible_user_ids": ["u2"],
        "checklist": [{"id": "c1", "text": "Gravar", "completed": False}],
    }])
    [back] = await sql_provider.select("projects", eq={"id": row["id"]})
    assert back["end_date"] == date(2024, 2, 10)
    assert back["responsible_user_ids"] == ["u2"]
    assert back["checklist"][0]["text"] == "Gravar"

    await sql_provider.insert("appointments", [{
        "title": "Reunião", "date": datetime(2024, 1, 1, 12, tzinfo=timezone.utc), "user_id": "u1",
    }])
    assert len(await sql_provider.select("appointments", order="date")) == 1


async def test_unknown_table_or_column_is_schema_mismatch(sql_provider):
    with pytest.raises(SchemaMismatchError):
        await sql_provider.select("invoices")
    with pytest.raises(SchemaMismatchError):
        await sql_provider.update("projects", {"priority": 1}, eq={"id": "x"})


async def test_delete_without_filter_is_refused(sql_provider):
    with pytest.raises(RemoteStoreError):
        await sql_provider.delete("projects", eq={})


async def test_sign_up_creates_profile_and_credentials(sql_provider):
    user = await sql_provider.sign_up("Nova@Studio.com.br", "segredo123", {"name": "Nova"})
    [profile] = await sql_provider.select("profiles", eq={"id": user.id})
    assert profile["email"] == "nova@studio.com.br"
    assert profile["role"] == "Free"
    assert profile["approved"] is False
    assert "password_hash" not in profile

    session = await sql_provider.sign_in_with_password("nova@studio.com.br", "segredo123")
    assert session.user.id == user.id
    assert (await sql_provider.get_user(session.access_token)).email == "nova@studio.com.br"

    with pytest.raises(AuthError, match="Invalid login credentials"):
        await sql_provider.sign_in_with_password("nova@studio.com.br", "errada")
    with pytest.raises(AuthError, match="User already registered"):
        await sql_provider.sign_up("nova@studio.com.br", "outra-senha", {})
    with pytest.raises(AuthError):
        await sql_provider.sign_up("curta@studio.com.br", "123", {})


async def test_upsert_updates_existing_profile(sql_provider):
    user = await sql_provider.sign_up("ana@studio.com.br", "segredo123", {"name": "Ana"})
    row = await sql_provider.upsert("profiles", {"id": user.id, "approved": True, "role": "Master"})
    assert row["approved"] is True and row["role"] == "Master" and row["name"] == "Ana"


async def test_reset_password_is_silent_for_unknown_email(sql_provider):
    await sql_provider.sign_up("ana@studio.com.br", "segredo123", {})
    await sql_provider.reset_password_for_email("ana@studio.com.br")
    await sql_provider.reset_password_for_email("ninguem@studio.com.br")


async def test_deleting_profile_keeps_the_login(sql_provider):
    user = await sql_provider.sign_up("ana@studio.com.br", "segredo123", {"name": "Ana", "approved": True})
    assert await sql_provider.delete("profiles", eq={"id": user.id}) == 1

    session = await sql_provider.sign_in_with_password("ana@studio.com.br", "segredo123")
    assert session.user.id == user.id
    assert session.user.user_metadata == {}
    assert await sql_provider.select("profiles", eq={"id": user.id}) == []
