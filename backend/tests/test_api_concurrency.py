"""Concurrency-focused tests exercising the API's per-request isolation."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from fastapi.testclient import TestClient
from backend.app.main import app

client = TestClient(app)


def _post(path, payload):
    r = client.post(path, json=payload)
    return r.status_code, r.json()


def test_concurrent_runs_isolated():
    # Each job binds the same name to a different value; per-request
    # contexts mean every response sees only its own binding.
    jobs = [
        {"code": f"var a = {i}\nfor k = 0 to 200 then a = a + 0\na * 2", "settings": {"max_steps": 100000}}
        for i in range(12)
    ]
    # one job trips its own tiny limit without affecting the others
    jobs.append({"code": "while 1 then 1", "settings": {"max_loop": 10}})

    results = []
    with ThreadPoolExecutor(max_workers=6) as ex:
        futures = {ex.submit(_post, "/run", j): idx for idx, j in enumerate(jobs)}
        for fut in as_completed(futures):
            results.append((futures[fut], fut.result()))

    assert len(results) == len(jobs)
    for idx, (status, body) in results:
        assert status == 200
        if idx < 12:
            assert body["errors"] is None
            assert body["value"] == str(idx * 2)
        else:
            assert body["errors"][0]["message"] == "Loop iteration limit exceeded"


def test_concurrent_runs_on_one_session_serialize():
    sid = client.post("/sessions").json()["session_id"]
    client.post(f"/sessions/{sid}/run", json={"code": "var total = 0"})

    with ThreadPoolExecutor(max_workers=8) as ex:
        futures = [
            ex.submit(_post, f"/sessions/{sid}/run", {"code": "total = total + 1"})
            for _ in range(40)
        ]
        for fut in as_completed(futures):
            status, body = fut.result()
            assert status == 200
            assert body["errors"] is None

    body = client.post(f"/sessions/{sid}/run", json={"code": "total"}).json()
    assert body["value"] == "40"
