from fastapi.testclient import TestClient
from backend.app import main
from backend.app.main import app

client = TestClient(app)


def test_api_step_limit_through_run():
    # a client may lower the step budget for its own run
    code = "\n".join(["1 + 1"] * 100)
    payload = {"code": code, "settings": {"max_steps": 50}}
    r = client.post("/run", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body.get("errors") is not None
    assert body["errors"][0]["message"] == "Step limit exceeded"


def test_api_cannot_raise_server_limits(monkeypatch):
    # lower the server-side ceiling; the client's larger request is clamped to it
    monkeypatch.setitem(main.DEFAULT_SETTINGS, "max_loop", 5)
    payload = {"code": "for i = 0 to 100 then i", "settings": {"max_loop": 1_000_000}}
    body = client.post("/run", json=payload).json()
    assert body["errors"][0]["message"] == "Loop iteration limit exceeded"


def test_api_call_depth_limit():
    payload = {"code": "fun f(n: Int) => f(n + 1)\nf(0)", "settings": {"max_call_depth": 10}}
    body = client.post("/run", json=payload).json()
    assert body["errors"][0]["message"] == "Maximum call depth exceeded"
    assert len(body["errors"][0]["traceback"]) == 11


def test_api_invalid_settings():
    r = client.post("/run", json={"code": "1", "settings": {"max_loop": "lots"}})
    assert r.status_code == 422
