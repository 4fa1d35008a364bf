from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest
import respx

from conftest import GEMINI_BASE, api

ICS = (
    "BEGIN:VCALENDAR\n"
    "BEGIN:VEVENT\nSUMMARY:Gravação externa\nDTSTART:20240205T130000Z\nEND:VEVENT\n"
    "BEGIN:VEVENT\nSUMMARY:Entrega\nDTSTART;VALUE=DATE:20240220\nEND:VEVENT\n"
    "BEGIN:VEVENT\nDESCRIPTION:sem título\nDTSTART:20240221T100000Z\nEND:VEVENT\n"
    "END:VCALENDAR\n"
)


@pytest.fixture
def ana_headers(provider, login):
    provider.add_user("ana@studio.com.br", name="Ana")
    return login("ana@studio.com.br")


def test_appointment_form_combines_date_and_time_in_viewer_zone(client, provider, ana_headers):
    r = client.post(api("/appointments"), headers=ana_headers, json={
        "title": "Reunião", "day": "2024-02-05", "hour": "09:00", "tz": "America/Sao_Paulo",
    })
    assert r.status_code == 201
    created = r.json()
    assert datetime.fromisoformat(created["date"].replace("Z", "+00:00")) == datetime(2024, 2, 5, 12, tzinfo=timezone.utc)

    r = client.put(api(f"/appointments/{created['id']}"), headers=ana_headers, json={
        "title": "Reunião remarcada", "day": "2024-02-06", "hour": "10:30", "tz": "America/Sao_Paulo",
    })
    assert r.json()["title"] == "Reunião remarcada"
    assert provider.tables["appointments"][0]["date"] == datetime(2024, 2, 6, 13, 30, tzinfo=timezone.utc)

    assert client.delete(api(f"/appointments/{created['id']}"), headers=ana_headers).status_code == 400
    assert client.delete(api(f"/appointments/{created['id']}?confirm=true"), headers=ana_headers).status_code == 204
    assert client.get(api("/appointments"), headers=ana_headers).json() == []


def test_appointment_requires_title_date_and_time(client, ana_headers):
    r = client.post(api("/appointments"), headers=ana_headers, json={"title": "Reunião", "day": "2024-02-05"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Preencha título, data e hora."

    r = client.post(api("/appointments"), headers=ana_headers, json={
        "title": "Reunião", "day": "2024-02-05", "hour": "09:00", "tz": "Mars/Olympus",
    })
    assert r.status_code == 400


def test_ics_preview_then_confirmed_import(client, provider, ana_headers):
    preview = client.post(api("/appointments/import/preview"), headers=ana_headers, json={
        "content": ICS, "tz": "America/Sao_Paulo",
    }).json()
    assert [e["title"] for e in preview["events"]] == ["Gravação externa", "Entrega"]
    assert preview["skipped"] == 1
    assert provider.tables["appointments"] == []

    r = client.post(api("/appointments/import"), headers=ana_headers, json={"content": ICS, "tz": "America/Sao_Paulo"})
    assert r.status_code == 400

    r = client.post(api("/appointments/import"), headers=ana_headers, json={
        "content": ICS, "tz": "America/Sao_Paulo", "confirm": True,
    })
    assert r.status_code == 201
    assert len(r.json()) == 2
    owner = provider.credentials["ana@studio.com.br"][0]
    assert {row["user_id"] for row in provider.tables["appointments"]} == {owner}


def test_calendar_month_buckets_and_navigation(client, provider, ana_headers):
    board = client.get(api("/board"), headers=ana_headers).json()
    ideias = next(c["id"] for c in board["columns"] if c["title"] == "Ideias")
    client.post(api("/projects"), headers=ana_headers, json={
        "title": "Prazo", "column_id": ideias, "client_id": "c1", "end_date": "2024-02-10",
    })
    client.post(api("/projects"), headers=ana_headers, json={"title": "Sem prazo", "column_id": ideias, "client_id": "c1"})
    client.post(api("/appointments"), headers=ana_headers, json={
        "title": "Noite", "day": "2024-02-01", "hour": "22:30", "tz": "America/Sao_Paulo",
    })

    cal = client.get(api("/calendar?year=2024&month=2&tz=America/Sao_Paulo"), headers=ana_headers).json()
    assert cal["days_in_month"] == 29
    assert cal["leading_blanks"] == 4
    days = {d["day"]: d for d in cal["days"]}
    assert [p["title"] for p in days[10]["projects"]] == ["Prazo"]
    assert [a["title"] for a in days[1]["appointments"]] == ["Noite"]
    assert sum(len(d["projects"]) for d in cal["days"]) == 1

    # navegação parte do mês guardado na sessão
    nxt = client.get(api("/calendar?shift=1&tz=America/Sao_Paulo"), headers=ana_headers).json()
    assert (nxt["year"], nxt["month"]) == (2024, 3)
    prev = client.get(api("/calendar?shift=-3"), headers=ana_headers).json()
    assert (prev["year"], prev["month"]) == (2023, 12)

    view = client.get(api("/board/view"), headers=ana_headers).json()
    assert (view["calendar_year"], view["calendar_month"]) == (2023, 12)


# =============== IA ===============
def _project(client, headers):
    board = client.get(api("/board"), headers=headers).json()
    ideias = next(c["id"] for c in board["columns"] if c["title"] == "Ideias")
    return client.post(api("/projects"), headers=headers, json={
        "title": "Lançamento", "brief": "Vídeo curto", "column_id": ideias, "client_id": "c1",
    }).json()


@respx.mock
def test_generated_checklist_is_saved_on_project(client, provider, ana_headers):
    respx.post(f"{GEMINI_BASE}/models/gemini-text:generateContent").mock(return_value=httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": '{"pre_producao": ["Roteiro"], "producao": [], "pos_producao": []}'}]}}],
    }))
    project = _project(client, ana_headers)

    r = client.post(api(f"/ai/projects/{project['id']}/checklist"), headers=ana_headers)
    assert r.status_code == 200
    assert [i["text"] for i in r.json()["checklist"]] == ["(Pré-produção) Roteiro"]
    assert provider.tables["projects"][0]["checklist"][0]["text"] == "(Pré-produção) Roteiro"


@respx.mock
def test_script_failure_is_reported_and_nothing_saved(client, provider, ana_headers):
    respx.post(f"{GEMINI_BASE}/models/gemini-text:generateContent").mock(
        return_value=httpx.Response(429, json={"error": {"message": "quota exceeded"}})
    )
    project = _project(client, ana_headers)

    r = client.post(api(f"/ai/projects/{project['id']}/script"), headers=ana_headers)
    assert r.status_code == 502
    assert r.json()["detail"].startswith("Falha ao gerar o roteiro.")
    assert provider.tables["projects"][0].get("script") is None


@respx.mock
def test_generated_thumbnail_is_saved(client, provider, ana_headers):
    respx.post(f"{GEMINI_BASE}/models/gemini-image:generateContent").mock(return_value=httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "QUJD"}}]}}],
    }))
    project = _project(client, ana_headers)

    r = client.post(api(f"/ai/projects/{project['id']}/thumbnail"), headers=ana_headers)
    assert r.json()["thumbnail"] == "QUJD"
    assert provider.tables["projects"][0]["thumbnail"] == "QUJD"


@respx.mock
def test_script_with_html_reply_returns_inline_error(client, provider, ana_headers):
    respx.post(f"{GEMINI_BASE}/models/gemini-text:generateContent").mock(
        return_value=httpx.Response(200, text="<html>proxy</html>")
    )
    project = _project(client, ana_headers)

    r = client.post(api(f"/ai/projects/{project['id']}/script"), headers=ana_headers)
    assert r.status_code == 502
    assert r.json()["detail"].startswith("Falha ao gerar o roteiro.")


def test_calendar_month_without_year_uses_current_year(client, ana_headers):
    cal = client.get(api("/calendar?month=3&tz=America/Sao_Paulo"), headers=ana_headers).json()
    assert cal["month"] == 3
    assert cal["year"] == datetime.now(ZoneInfo("America/Sao_Paulo")).year
