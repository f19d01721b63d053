"""FastAPI application entrypoints for BlazeScript.

Each `/run` request evaluates against a fresh global context so no state is
shared between requests. Clients that want REPL-style persistence create a
session and run against it; sessions live in process memory only. Server-side
caps are enforced to prevent clients from raising resource limits.
"""

import logging
import threading
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ..blazescript.interpreter import DEFAULT_SETTINGS, Session, outcome_to_dict, run
from ..blazescript.subprocess_runner import run_in_subprocess

logger = logging.getLogger(__name__)

app = FastAPI(title="BlazeScript API", version="0.1")

DEFAULT_TIMEOUT_S = 2.0
MAX_TIMEOUT_S = 10.0


def _cap_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Enforce server-side safe caps for runtime tunables.

    Client values are coerced and clamped to `DEFAULT_SETTINGS`, which act as
    ceilings; limits below 1 are raised to 1. `timeout_s` only applies to
    subprocess runs and is clamped to MAX_TIMEOUT_S.
    """
    settings = settings or {}
    try:
        caps: Dict[str, Any] = {
            key: max(1, min(int(settings.get(key, ceiling)), ceiling))
            for key, ceiling in DEFAULT_SETTINGS.items()
        }
        caps["timeout_s"] = max(0.1, min(float(settings.get("timeout_s", DEFAULT_TIMEOUT_S)), MAX_TIMEOUT_S))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid settings: {e}")
    caps["use_subprocess"] = bool(settings.get("use_subprocess", False))
    return caps


class RunRequest(BaseModel):
    """Pydantic model for the `/run` request body.

    Fields:
        code: BlazeScript source text.
        name: source name used in error messages and tracebacks.
        settings: optional runtime limits; will be capped server-side.
    """
    code: str
    name: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class SessionCreated(BaseModel):
    session_id: str


class _SessionStore:
    """In-memory sessions, each with its own lock so runs on one session serialize."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, Any] = {}

    def create(self) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (Session(), threading.Lock())
        return session_id

    def get(self, session_id: str):
        with self._lock:
            entry = self._sessions.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Unknown session")
        return entry

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise HTTPException(status_code=404, detail="Unknown session")


sessions = _SessionStore()


def _execute(req: RunRequest, session: Optional[Session] = None) -> Dict[str, Any]:
    start = time.time()
    name = req.name or "<stdin>"
    capped = _cap_settings(req.settings)
    limits = {key: capped[key] for key in DEFAULT_SETTINGS}
    try:
        if capped["use_subprocess"] and session is None:
            result = run_in_subprocess(req.code, name=name, settings=limits, timeout_s=capped["timeout_s"])
        else:
            result = outcome_to_dict(run(name, req.code, session=session, settings=limits))
    except Exception as e:
        # Return a consistent error payload instead of raising
        logger.exception("run of %s failed", name)
        result = {
            "value": None,
            "type": None,
            "errors": [{"code": "SERVER_ERROR", "message": str(e)}],
        }
    result["duration_ms"] = int((time.time() - start) * 1000)
    return result


@app.post("/run")
def run_code(req: RunRequest):
    """Run a program against a fresh global context."""
    return _execute(req)


@app.post("/sessions", response_model=SessionCreated)
def create_session():
    return SessionCreated(session_id=sessions.create())


@app.post("/sessions/{session_id}/run")
def run_in_session(session_id: str, req: RunRequest):
    """Run a program against the session's persistent global context.

    Sessions always run in-process; `use_subprocess` is ignored here because
    the child process cannot share the session's bindings.
    """
    session, lock = sessions.get(session_id)
    with lock:
        return _execute(req, session)


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    sessions.delete(session_id)
    return {"deleted": session_id}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
