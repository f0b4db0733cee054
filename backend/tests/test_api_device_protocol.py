"""
Tests d'intégration API pour le protocole terminal.
Testent POST /api/visitors/getPersonList
      POST /api/visitors/getPersonInfo
      POST /api/attendances/dataUpload

Toutes les réponses, erreurs comprises, doivent respecter l'enveloppe {result, success, msg}.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.database import get_db
from app.main import app
from app.models.attendance import Attendance
from app.models.device import Device
from app.models.visitor import Visitor
from app.routers.device_protocol import UNEXPECTED_ERROR_MSG

DEVICE_KEY = "cle-terminal-entree"
EVENT_MILLIS = 1736929800000  # 2025-01-15 08:30:00 UTC


# --- Helpers ---

def make_device(db, device_key=DEVICE_KEY) -> Device:
    device = Device(name="Entrée principale", device_key=device_key, group_id="1")
    db.add(device)
    db.commit()
    db.refresh(device)
    return device


def make_visitor(db, idcard_num="ID-0001", name="Alice Martin") -> Visitor:
    visitor = Visitor(name=name, idcard_num=idcard_num, img_base64="aGVsbG8=", type=1, passtime="P")
    db.add(visitor)
    db.commit()
    db.refresh(visitor)
    return visitor


def upload_payload(**kwargs) -> dict:
    payload = {
        "groupId": "1",
        "deviceKey": DEVICE_KEY,
        "idcardNumber": "ID-0001",
        "recordId": "rec-1",
        "imgBase64": "Y2FwdHVyZQ==",
        "time": str(EVENT_MILLIS),
        "type": "face_0",
        "extra": {"temperature": 36.6},
    }
    payload.update(kwargs)
    return payload


def assert_failure_envelope(response, status_code):
    assert response.status_code == status_code
    body = response.json()
    assert body["result"] == 0
    assert body["success"] is False
    assert body["msg"]
    assert "error" not in body


# ============================================================
# POST /api/visitors/getPersonList
# ============================================================

def test_get_person_list_succes(db_client, db_session):
    make_device(db_session)
    make_visitor(db_session)

    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": 1, "pageSize": 10,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == 1
    assert body["success"] is True
    assert body["total"] == 1
    record = body["data"][0]
    assert set(record) == {"idcardNum", "name", "imgBase64", "type", "passtime", "md5"}
    assert record["idcardNum"] == "ID-0001"


def test_get_person_list_roster_vide(db_client, db_session):
    make_device(db_session)

    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": 1, "pageSize": 10,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == 1
    assert body["total"] == 0
    assert body["data"] == []


def test_get_person_list_parametre_manquant(db_client, db_session):
    make_device(db_session)
    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": 1,
    })
    assert_failure_envelope(response, 400)
    assert "pageSize" in response.json()["msg"]


def test_get_person_list_terminal_inconnu(db_client, db_session):
    make_visitor(db_session)
    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": "cle-inconnue", "page": 1, "pageSize": 10,
    })
    assert_failure_envelope(response, 400)
    assert response.json()["msg"] == "deviceKey invalide."


def test_get_person_list_json_mal_forme(db_client):
    """JSON invalide → 400 dans l'enveloppe terminal, pas le 422 générique."""
    response = db_client.post(
        "/api/visitors/getPersonList",
        content="{groupId: 1",
        headers={"Content-Type": "application/json"},
    )
    assert_failure_envelope(response, 400)


def test_get_person_list_page_non_numerique(db_client, db_session):
    make_device(db_session)
    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": "abc", "pageSize": 10,
    })
    assert_failure_envelope(response, 400)


def test_get_person_list_base_indisponible(client):
    """Erreur de la base → 500 dans l'enveloppe terminal."""
    with patch("app.routers.device_protocol.roster_service.get_person_list") as mock:
        mock.side_effect = OperationalError("SELECT 1", {}, Exception("connexion refusée"))
        response = client.post("/api/visitors/getPersonList", json={
            "groupId": "1", "deviceKey": DEVICE_KEY, "page": 1, "pageSize": 10,
        })
    assert_failure_envelope(response, 500)


def test_get_person_list_corps_trop_volumineux(db_client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_BODY_SIZE_MB", 0)
    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": 1, "pageSize": 10,
    })
    assert_failure_envelope(response, 413)


def test_get_person_list_page_size_demesuree(db_client, db_session):
    """pageSize hors bornes → 400 enveloppe terminal, sans dépassement d'entier sur l'offset."""
    make_device(db_session)
    response = db_client.post("/api/visitors/getPersonList", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "page": 2, "pageSize": 10**19,
    })
    assert_failure_envelope(response, 400)
    assert "pageSize" in response.json()["msg"]


def test_get_person_list_corps_fragmente_trop_volumineux(db_client, monkeypatch):
    """Corps envoyé sans Content-Length (chunked) : la limite s'applique à la lecture."""
    monkeypatch.setattr(settings, "MAX_BODY_SIZE_MB", 0)
    body = b'{"groupId": "1", "deviceKey": "cle-terminal-entree", "page": 1, "pageSize": 10}'
    response = db_client.post(
        "/api/visitors/getPersonList",
        content=iter([body]),
        headers={"Content-Type": "application/json"},
    )
    assert_failure_envelope(response, 413)


# ============================================================
# Erreur inattendue : toujours l'enveloppe terminal
# ============================================================

@pytest.mark.parametrize("path, target, payload", [
    (
        "/api/visitors/getPersonList",
        "app.routers.device_protocol.roster_service.get_person_list",
        {"groupId": "1", "deviceKey": DEVICE_KEY, "page": 1, "pageSize": 10},
    ),
    (
        "/api/visitors/getPersonInfo",
        "app.routers.device_protocol.roster_service.get_person_info",
        {"groupId": "1", "deviceKey": DEVICE_KEY, "idcardNum": "ID-0001"},
    ),
    (
        "/api/attendances/dataUpload",
        "app.routers.device_protocol.attendance_service.data_upload",
        upload_payload(),
    ),
])
def test_erreur_inattendue_enveloppe_terminal(path, target, payload):
    """Une exception hors base (bug, débordement…) reste un 500 lisible par le firmware."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            with patch(target) as mock:
                mock.side_effect = OverflowError("Python int too large to convert to SQLite INTEGER")
                response = c.post(path, json=payload)
    finally:
        app.dependency_overrides.clear()

    assert_failure_envelope(response, 500)
    assert response.json()["msg"] == UNEXPECTED_ERROR_MSG


# ============================================================
# POST /api/visitors/getPersonInfo
# ============================================================

def test_get_person_info_succes(db_client, db_session):
    make_device(db_session)
    make_visitor(db_session, idcard_num="ID-0042", name="Bob")

    response = db_client.post("/api/visitors/getPersonInfo", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "idcardNum": "ID-0042",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == 1
    assert body["data"]["name"] == "Bob"
    assert len(body["data"]["md5"]) == 32


def test_get_person_info_introuvable(db_client, db_session):
    make_device(db_session)
    response = db_client.post("/api/visitors/getPersonInfo", json={
        "groupId": "1", "deviceKey": DEVICE_KEY, "idcardNum": "ID-9999",
    })
    assert_failure_envelope(response, 404)


def test_get_person_info_terminal_inconnu(db_client, db_session):
    make_visitor(db_session)
    response = db_client.post("/api/visitors/getPersonInfo", json={
        "groupId": "1", "deviceKey": "cle-inconnue", "idcardNum": "ID-0001",
    })
    assert_failure_envelope(response, 400)


def test_empreinte_change_apres_modification(db_client, db_session, auth_headers):
    """Une modification d'un visiteur change l'empreinte servie au terminal."""
    make_device(db_session)
    visitor = make_visitor(db_session)
    visitor_id = visitor.id
    request = {"groupId": "1", "deviceKey": DEVICE_KEY, "idcardNum": "ID-0001"}

    before = db_client.post("/api/visitors/getPersonInfo", json=request).json()["data"]["md5"]
    db_client.put(
        f"/api/visitors/{visitor_id}",
        json={"imgBase64": "bm91dmVsbGU="},
        headers=auth_headers(),
    )
    after = db_client.post("/api/visitors/getPersonInfo", json=request).json()["data"]["md5"]

    assert before != after


# ============================================================
# POST /api/attendances/dataUpload
# ============================================================

def test_data_upload_visiteur_connu(db_client, db_session):
    device = make_device(db_session)
    visitor = make_visitor(db_session)
    device_id, visitor_id = device.id, visitor.id

    response = db_client.post("/api/attendances/dataUpload", json=upload_payload())

    assert response.status_code == 200
    assert response.json() == {"result": 1, "success": True, "msg": "Reçu avec succès"}

    attendance = db_session.execute(select(Attendance)).scalar_one()
    assert attendance.device_id == device_id
    assert attendance.visitor_id == visitor_id
    assert attendance.record_id == "rec-1"
    assert attendance.type == "face_0"
    assert attendance.time.replace(tzinfo=None) == datetime(2025, 1, 15, 8, 30)


def test_data_upload_visiteur_inconnu(db_client, db_session):
    """idcardNumber inconnu → 200, présence enregistrée avec visitor_id NULL."""
    make_device(db_session)

    response = db_client.post("/api/attendances/dataUpload", json=upload_payload(idcardNumber="ID-INCONNU"))

    assert response.status_code == 200
    assert response.json()["result"] == 1
    attendance = db_session.execute(select(Attendance)).scalar_one()
    assert attendance.visitor_id is None
    assert attendance.img_base64 == "Y2FwdHVyZQ=="


def test_data_upload_terminal_inconnu(db_client, db_session):
    """deviceKey inconnue → 400, rien n'est enregistré, même avec un payload complet."""
    make_visitor(db_session)

    response = db_client.post("/api/attendances/dataUpload", json=upload_payload(deviceKey="cle-inconnue"))

    assert_failure_envelope(response, 400)
    assert db_session.execute(select(Attendance)).first() is None


def test_data_upload_extra_stocke_tel_quel(db_client, db_session):
    make_device(db_session)
    extra = {"mask": 0, "nested": {"list": [1, 2, 3]}, "script": "<script>alert(1)</script>"}

    db_client.post("/api/attendances/dataUpload", json=upload_payload(extra=extra))

    assert db_session.execute(select(Attendance)).scalar_one().extra == extra


def test_data_upload_sans_deduplication(db_client, db_session):
    """Un upload rejoué avec le même recordId produit un second enregistrement."""
    make_device(db_session)

    db_client.post("/api/attendances/dataUpload", json=upload_payload())
    db_client.post("/api/attendances/dataUpload", json=upload_payload())

    assert len(db_session.execute(select(Attendance)).scalars().all()) == 2


def test_data_upload_time_numerique(db_client, db_session):
    make_device(db_session)
    response = db_client.post("/api/attendances/dataUpload", json=upload_payload(time=EVENT_MILLIS))
    assert response.status_code == 200


def test_data_upload_time_invalide(db_client, db_session):
    make_device(db_session)
    response = db_client.post("/api/attendances/dataUpload", json=upload_payload(time="hier"))
    assert_failure_envelope(response, 400)


def test_data_upload_time_manquant(db_client, db_session):
    make_device(db_session)
    payload = upload_payload()
    del payload["time"]

    response = db_client.post("/api/attendances/dataUpload", json=payload)

    assert_failure_envelope(response, 400)
    assert "time" in response.json()["msg"]


def test_data_upload_erreur_base(client):
    with patch("app.routers.device_protocol.attendance_service.data_upload") as mock:
        mock.side_effect = OperationalError("INSERT", {}, Exception("disque plein"))
        response = client.post("/api/attendances/dataUpload", json=upload_payload())
    assert_failure_envelope(response, 500)
