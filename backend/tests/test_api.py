"""API integration smoke tests using FastAPI TestClient."""

from fastapi.testclient import TestClient
from backend.app.main import app

client = TestClient(app)


def test_run_value():
	r = client.post('/run', json={'code': 'val x: Int = 2 + 3 * 4'})
	assert r.status_code == 200
	body = r.json()
	assert body['value'] == '14'
	assert body['type'] == 'Int'
	assert body['errors'] is None
	assert isinstance(body['duration_ms'], int)


def test_run_no_value():
	r = client.post('/run', json={'code': 'if 0 then 1'})
	body = r.json()
	assert body['value'] is None
	assert body['type'] is None
	assert body['errors'] is None


def test_run_type_error():
	r = client.post('/run', json={'code': '1 + "x"', 'name': 'bad.bzs'})
	assert r.status_code == 200
	errors = r.json()['errors']
	assert len(errors) == 1
	assert errors[0]['code'] == 'INVALID_TYPE'
	assert errors[0]['file'] == 'bad.bzs'
	assert (errors[0]['line'], errors[0]['column']) == (1, 1)


def test_run_runtime_error_has_traceback():
	code = 'fun boom() => 1 / 0\nboom()'
	errors = client.post('/run', json={'code': code}).json()['errors']
	assert errors[0]['code'] == 'RUNTIME_ERROR'
	assert errors[0]['message'] == 'Division by zero'
	assert [f['frame'] for f in errors[0]['traceback']] == ['<Global>', 'boom']


def test_run_lexical_error():
	errors = client.post('/run', json={'code': 'val a = 1 $'}).json()['errors']
	assert errors[0]['code'] == 'ILLEGAL_CHARACTER'
	assert errors[0]['column'] == 11


def test_runs_share_no_state():
	client.post('/run', json={'code': 'val shared = 1'})
	errors = client.post('/run', json={'code': 'shared'}).json()['errors']
	assert errors[0]['message'] == "'shared' is not defined"


def test_missing_code_is_rejected():
	r = client.post('/run', json={'name': 'x'})
	assert r.status_code == 422


def test_int_overflow_is_reported_not_raised():
	r = client.post('/run', json={'code': '10 ^ 5000'})
	assert r.status_code == 200
	errors = r.json()['errors']
	assert errors[0]['code'] == 'RUNTIME_ERROR'
	assert errors[0]['message'] == 'Numeric overflow'
