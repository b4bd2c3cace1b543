"""
FieldSync Backend: HTTP API Tests
==================================

What:  End-to-end tests of the four mobile/dashboard endpoints plus the
       banner and health probe, through the full middleware chain.
How:   HTTPX AsyncClient on the ASGI app; sessions come from the per-test
       SQLite datastore (see conftest.test_client).

What we test:
    ✅ Status codes and the {success, message, error?} envelope
    ✅ Malformed bodies → 400 envelope, never FastAPI's 422
    ✅ A failed sync returns 500 with driver detail and persists nothing
    ✅ X-Request-ID is echoed / generated
"""

import pytest
from sqlalchemy import event

from fieldsync.models import Report


LOGIN_OK = {"idInspector": "INSP01", "password": "hunter2"}

NEW_INSPECTOR = {
    "nombre": "Bruno",
    "apellido": "Silva",
    "codigo": "C-77",
    "fechaNac": "17/05/1990",
    "paradero": "Terminal Colón",
    "contraseña": "s3creto",
}

REPORT = {
    "fecha": "04/10/2001",
    "hora": "14:30",
    "padron": "1203",
    "cantidad": "3",
    "observaciones": ["a", "b"],
    "reintegradoMontos": ["12.50"],
    "boletosMarcados": {"A": [1001, 1002]},
    "rangoBoletos": {"A": {"min": 1000, "max": 1050}},
}


class TestBanner:

    @pytest.mark.asyncio
    async def test_root(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "funcionando" in response.text

    @pytest.mark.asyncio
    async def test_health_connected(self, test_client, db_engine, monkeypatch):
        monkeypatch.setattr("fieldsync.database.init_engine", lambda: db_engine)

        response = await test_client.get("/health")
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_health_disconnected(self, test_client, monkeypatch):
        def unreachable():
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr("fieldsync.database.init_engine", unreachable)

        response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestLoginEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, test_client, seeded_inspector):
        response = await test_client.post("/login", json=LOGIN_OK)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Login exitoso.",
            "inspector": {"idInspector": "INSP01", "codeInsp": "C-01", "nombre": "Ana"},
        }

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, seeded_inspector):
        response = await test_client.post("/login", json={**LOGIN_OK, "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "ID de Inspector o contraseña incorrectos.",
        }

    @pytest.mark.asyncio
    async def test_missing_password(self, test_client):
        response = await test_client.post("/login", json={"idInspector": "INSP01"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_not_json(self, test_client):
        response = await test_client.post(
            "/login", content=b"idInspector=INSP01", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "El cuerpo de la petición no es válido.",
        }


class TestRegisterEndpoint:

    @pytest.mark.asyncio
    async def test_created_then_conflict(self, test_client):
        first = await test_client.post("/register", json=NEW_INSPECTOR)
        assert first.status_code == 201
        assert first.json() == {"success": True, "message": "Inspector registrado exitosamente."}

        second = await test_client.post("/register", json=NEW_INSPECTOR)
        assert second.status_code == 409
        assert second.json() == {
            "success": False,
            "message": "Este ID de inspector ya está registrado.",
        }

        # Registered under its code
        login = await test_client.post("/login", json={"idInspector": "C-77", "password": "s3creto"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client):
        body = {key: value for key, value in NEW_INSPECTOR.items() if key != "paradero"}

        response = await test_client.post("/register", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Faltan datos obligatorios para el registro."


class TestSyncReportEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, test_client):
        response = await test_client.post("/sync-report", json={"report": REPORT})
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["message"] == "Informe sincronizado correctamente."
        assert isinstance(body["remoteId"], int)

    @pytest.mark.asyncio
    async def test_missing_report(self, test_client):
        response = await test_client.post("/sync-report", json={"foo": 1})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": 'Falta el objeto "report" en el cuerpo de la petición.',
        }

    @pytest.mark.asyncio
    async def test_report_not_an_object(self, test_client):
        response = await test_client.post("/sync-report", json={"report": "hola"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_failure_returns_error_detail(self, test_client, db_engine, count_rows):
        def fail_markings(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith("INSERT INTO REPORT_TICKET_MARKED"):
                raise RuntimeError("simulated write failure")

        event.listen(db_engine.sync_engine, "before_cursor_execute", fail_markings)
        try:
            response = await test_client.post("/sync-report", json={"report": REPORT})
        finally:
            event.remove(db_engine.sync_engine, "before_cursor_execute", fail_markings)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Error interno al sincronizar el informe.",
            "error": "simulated write failure",
        }
        assert await count_rows(Report) == 0


class TestGetReportsEndpoint:

    @pytest.mark.asyncio
    async def test_lists_synced_reports(self, test_client):
        ids = []
        for padron in ("10", "20"):
            response = await test_client.post("/sync-report", json={"report": {**REPORT, "padron": padron}})
            ids.append(response.json()["remoteId"])

        response = await test_client.get("/get-reports")
        body = response.json()

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert body["success"] is True
        assert body["count"] == 2
        assert [r["id"] for r in body["reports"]] == list(reversed(ids))

        newest = body["reports"][0]
        assert newest["padron"] == "20"
        assert newest["fecha"] == "2001-10-04"
        assert newest["hora"] == "14:30:00"
        assert newest["cantidad"] == 3
        assert newest["falta"] == "N/A"

    @pytest.mark.asyncio
    async def test_empty(self, test_client):
        response = await test_client.get("/get-reports")
        assert response.json() == {"success": True, "count": 0, "reports": []}


class TestRequestId:

    @pytest.mark.asyncio
    async def test_echoes_client_id(self, test_client):
        response = await test_client.get("/get-reports", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"

    @pytest.mark.asyncio
    async def test_generates_id(self, test_client):
        response = await test_client.get("/get-reports")
        assert len(response.headers["x-request-id"]) == 8
