"""Session endpoints: REPL-style persistence over HTTP."""

from fastapi.testclient import TestClient
from backend.app.main import app

client = TestClient(app)


def _new_session():
    r = client.post("/sessions")
    assert r.status_code == 200
    return r.json()["session_id"]


def test_session_keeps_bindings():
    sid = _new_session()
    r = client.post(f"/sessions/{sid}/run", json={"code": "fun add(a: Int, b: Int) => a + b"})
    assert r.json()["type"] == "Function: Identifier"
    body = client.post(f"/sessions/{sid}/run", json={"code": "add(2,3)"}).json()
    assert body["value"] == "5"
    assert body["errors"] is None


def test_sessions_are_independent():
    first = _new_session()
    second = _new_session()
    client.post(f"/sessions/{first}/run", json={"code": "var n = 10"})
    body = client.post(f"/sessions/{second}/run", json={"code": "n"}).json()
    assert body["errors"][0]["message"] == "'n' is not defined"


def test_constants_survive_between_runs():
    sid = _new_session()
    client.post(f"/sessions/{sid}/run", json={"code": "val c = 1"})
    body = client.post(f"/sessions/{sid}/run", json={"code": "c = 2"}).json()
    assert body["errors"][0]["message"] == "Cannot reassign constant 'c'"


def test_delete_session():
    sid = _new_session()
    r = client.delete(f"/sessions/{sid}")
    assert r.status_code == 200
    assert r.json() == {"deleted": sid}
    assert client.post(f"/sessions/{sid}/run", json={"code": "1"}).status_code == 404
    assert client.delete(f"/sessions/{sid}").status_code == 404


def test_unknown_session():
    r = client.post("/sessions/does-not-exist/run", json={"code": "1"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Unknown session"
