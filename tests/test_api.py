# Nombre de archivo: test_api.py
# Ubicación de archivo: tests/test_api.py
# Descripción: Pruebas de los endpoints HTTP y WebSocket de avisos, cuadrillas y configuración

from __future__ import annotations

from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from api.app.deps import get_sheets_client
from core.parsers import squads_sheet as sheet
from db.base import Base
from db.session import get_session, get_session_factory

CSV = (
    f"{sheet.COL_DNI},{sheet.COL_NOMBRE},{sheet.COL_INTEGRANTES},{sheet.COL_AGUA}\n"
    "123,Ana,5,Si\n"
    "456,Bruno,3,No\n"
).encode("utf-8")

NUEVO_AVISO = {"type": "necesidad", "category": "agua", "title": "Bidones", "location": "El Hoyo"}


@pytest.fixture
def owner(user_headers):
    return user_headers("owner-1", "Lucía")


# ──────────────────────────────────────────────────────────────────────────────
# Avisos
# ──────────────────────────────────────────────────────────────────────────────


def test_flujo_completo_de_aviso(client, owner, user_headers):
    created = client.post("/api/posts", json=NUEVO_AVISO, headers=owner)
    assert created.status_code == 201
    post_id = created.json()["id"]
    assert created.json()["status"] == "abierto"
    assert created.json()["userName"] == "Lucía"

    voluntario = user_headers("vol-a", "Ramiro")
    assist = client.post(f"/api/posts/{post_id}/assist", json={"note": "Voy"}, headers=voluntario)
    assert assist.status_code == 200
    body = assist.json()
    assert body["success"] is True
    assert body["post"]["status"] == "en_proceso"
    assert body["post"]["assignedTo"] == [{"uid": "vol-a", "name": "Ramiro"}]

    resolved = client.post(f"/api/posts/{post_id}/resolve", json={"note": "Listo"}, headers=owner)
    assert resolved.status_code == 200
    assert resolved.json()["post"]["resolved"] is True

    late = client.post(f"/api/posts/{post_id}/assist", json={"note": "Voy"}, headers=voluntario)
    assert late.status_code == 409
    assert late.json()["errorCode"] == "invalid_transition"

    listing = client.get("/api/posts")
    assert [p["id"] for p in listing.json()] == [post_id]


def test_crear_aviso_anonimo_rechazado(client):
    response = client.post("/api/posts", json=NUEVO_AVISO)
    assert response.status_code == 403
    assert response.json()["errorCode"] == "permission"


def test_crear_aviso_con_categoria_invalida(client, owner):
    response = client.post("/api/posts", json={**NUEVO_AVISO, "category": "otros"}, headers=owner)
    assert response.status_code == 422


def test_compromiso_sin_nota(client, owner):
    post_id = client.post("/api/posts", json=NUEVO_AVISO, headers=owner).json()["id"]
    response = client.post(f"/api/posts/{post_id}/assist", json={"note": ""}, headers=owner)
    assert response.status_code == 422
    assert response.json()["errorCode"] == "invalid_input"


def test_compromiso_sobre_aviso_inexistente(client, owner):
    response = client.post("/api/posts/nada/assist", json={"note": "Voy"}, headers=owner)
    assert response.status_code == 404


def test_admin_resuelve_y_tercero_no_borra(client, owner, admin_headers, user_headers):
    post_id = client.post("/api/posts", json=NUEVO_AVISO, headers=owner).json()["id"]

    denied = client.delete(f"/api/posts/{post_id}", headers=user_headers("otro", "Otro"))
    assert denied.status_code == 403

    resolved = client.post(f"/api/posts/{post_id}/resolve", json={}, headers=admin_headers)
    assert resolved.status_code == 200

    deleted = client.delete(f"/api/posts/{post_id}", headers=owner)
    assert deleted.status_code == 200
    assert client.get("/api/posts").json() == []


# ──────────────────────────────────────────────────────────────────────────────
# Cuadrillas
# ──────────────────────────────────────────────────────────────────────────────


def test_lectura_publica_de_cuadrillas(client):
    response = client.get("/api/squads")
    assert response.status_code == 200
    assert response.json() == []


def test_admin_sube_planilla(client, admin_headers):
    response = client.post(
        "/api/admin/squads/upload",
        files={"file": ("cuadrillas.csv", CSV, "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert body["source"] == "upload"
    squads = {s["id"]: s for s in client.get("/api/squads").json()}
    assert squads["123"]["membersCount"] == 5
    assert squads["123"]["equipment"]["hasWater"] is True
    assert squads["456"]["equipment"]["hasWater"] is False


def test_usuario_comun_no_sube_planilla(client, user_headers):
    response = client.post(
        "/api/admin/squads/upload",
        files={"file": ("cuadrillas.csv", CSV, "text/csv")},
        headers=user_headers("u-1", "Común"),
    )
    assert response.status_code == 403


def test_planilla_vacia_devuelve_400(client, admin_headers):
    response = client.post(
        "/api/admin/squads/upload",
        files={"file": ("vacia.csv", b"DNI\n", "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "ingestion"


def test_sync_usa_url_configurada(app, client, admin_headers):
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=CSV)

    def _client():
        with httpx.Client(transport=httpx.MockTransport(handler)) as mock_client:
            yield mock_client

    app.dependency_overrides[get_sheets_client] = _client
    url = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"
    assert client.put("/api/admin/config", json={"url": url}, headers=admin_headers).status_code == 200

    response = client.post("/api/admin/squads/sync", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["source"] == "sheet"
    assert seen == [url]
    assert len(client.get("/api/squads").json()) == 2


def test_sync_fuente_caida_devuelve_400(app, client, admin_headers):
    def _client():
        with httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as mock_client:
            yield mock_client

    app.dependency_overrides[get_sheets_client] = _client
    response = client.post(
        "/api/admin/squads/sync",
        json={"url": "https://example.org/hoja.csv"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["errorCode"] == "ingestion"


# ──────────────────────────────────────────────────────────────────────────────
# Perfil y configuración
# ──────────────────────────────────────────────────────────────────────────────


def test_me_crea_perfil_con_rol_user(client, user_headers):
    response = client.get("/api/me", headers=user_headers("nuevo", "Nuevo Usuario"))
    assert response.status_code == 200
    assert response.json()["role"] == "user"


def test_me_sin_sesion(client):
    assert client.get("/api/me").status_code == 401


def test_configuracion_de_planilla(client, admin_headers, user_headers):
    assert client.get("/api/admin/config", headers=admin_headers).json()["sheetUrl"] is None

    invalid = client.put("/api/admin/config", json={"url": "ftp://hoja"}, headers=admin_headers)
    assert invalid.status_code == 422

    saved = client.put("/api/admin/config", json={"url": "https://example.org/hoja.csv"}, headers=admin_headers)
    assert saved.status_code == 200
    assert saved.json()["updatedBy"] == "admin@example.org"

    denied = client.get("/api/admin/config", headers=user_headers("u-2", "Común"))
    assert denied.status_code == 403


# ──────────────────────────────────────────────────────────────────────────────
# Suscripciones en vivo
# ──────────────────────────────────────────────────────────────────────────────


def test_ws_envia_instantanea_y_cambios(client, owner):
    with client.websocket_connect("/ws/posts") as ws:
        initial = ws.receive_json()
        assert initial == {"collection": "posts", "items": []}

        post_id = client.post("/api/posts", json=NUEVO_AVISO, headers=owner).json()["id"]

        update = ws.receive_json()
        assert update["event"] == "created"
        assert update["docId"] == post_id
        assert [p["id"] for p in update["items"]] == [post_id]


def test_ws_coleccion_desconocida(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/usuarios") as ws:
            ws.receive_json()


def test_ws_abierto_no_bloquea_el_pool(app, tmp_path, owner):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'pool.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=2,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    def _session():
        with factory() as db_session:
            yield db_session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_session_factory] = lambda: factory
    try:
        with TestClient(app) as pooled_client:
            with pooled_client.websocket_connect("/ws/posts") as ws:
                assert ws.receive_json()["items"] == []

                assert pooled_client.get("/api/posts").status_code == 200
                assert pooled_client.get("/api/squads").status_code == 200
                created = pooled_client.post("/api/posts", json=NUEVO_AVISO, headers=owner)
                assert created.status_code == 201

                update = ws.receive_json()
                assert update["docId"] == created.json()["id"]
                assert pooled_client.get("/api/posts").status_code == 200
    finally:
        engine.dispose()


# ──────────────────────────────────────────────────────────────────────────────
# Identidad en encabezados
# ──────────────────────────────────────────────────────────────────────────────


def test_nombre_con_acentos_percent_encoded(client):
    headers = {"X-User-Id": "u-acentos", "X-User-Name": quote("María Núñez")}
    post_id = client.post("/api/posts", json=NUEVO_AVISO, headers=headers).json()["id"]

    result = client.post(f"/api/posts/{post_id}/assist", json={"note": "Voy"}, headers=headers).json()

    assert result["post"]["userName"] == "María Núñez"
    assert result["post"]["assignedTo"] == [{"uid": "u-acentos", "name": "María Núñez"}]
    assert result["post"]["history"][0]["user"] == "María Núñez"


def test_nombre_utf8_crudo_se_recompone(client):
    headers = {"X-User-Id": "u-crudo", "X-User-Name": "Lucía".encode("utf-8")}
    created = client.post("/api/posts", json=NUEVO_AVISO, headers=headers)

    assert created.json()["userName"] == "Lucía"
