"""Run a BlazeScript program in a short-lived worker process.

The interpreter itself has no notion of wall-clock time. Hosts that need a
hard timeout launch `_subprocess_worker` (JSON over stdin/stdout) through
`run_code_in_subprocess`, which kills the child when the timeout expires and
can apply light OS-level resource limits on POSIX systems (CPU seconds and
address space).

Note: This is not a substitute for container/VM-based isolation.
"""

import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

WORKER_MODULE = "backend.blazescript._subprocess_worker"
# Directory that holds the top-level `backend` package
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _make_posix_preexec(cpu_seconds: Optional[int], mem_limit_mb: Optional[int]):
    """Return a preexec_fn that applies resource limits on POSIX systems."""
    def preexec():
        import resource

        if cpu_seconds is not None:
            resource.setrlimit(resource.RLIMIT_CPU, (int(cpu_seconds), int(cpu_seconds)))

        if mem_limit_mb is not None:
            mem_bytes = int(mem_limit_mb) * 1024 * 1024
            resource.setrlimit(resource.RLIMIT_AS, (mem_bytes, mem_bytes))

        # new session so a timeout kill does not reach the parent's group
        os.setsid()

    return preexec


def run_code_in_subprocess(
    code: str,
    timeout_s: float = 2,
    *,
    name: str = "<stdin>",
    settings: Optional[Dict[str, Any]] = None,
    cpu_seconds: Optional[int] = 2,
    mem_limit_mb: Optional[int] = 256,
) -> Tuple[int, str, str]:
    """Run `code` in the worker and return (returncode, stdout, stderr).

    On timeout the process is killed and (-1, "", "TIMEOUT") is returned.
    """
    env = {
        "PATH": os.environ.get("PATH", ""),
        "PYTHONPATH": str(PROJECT_ROOT),
    }

    popen_kwargs: Dict[str, Any] = dict(
        args=[sys.executable, "-m", WORKER_MODULE],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
        cwd=str(PROJECT_ROOT),
        close_fds=True,
    )
    if os.name != "nt":
        popen_kwargs["preexec_fn"] = _make_posix_preexec(cpu_seconds, mem_limit_mb)

    proc = subprocess.Popen(**popen_kwargs)

    payload = json.dumps({"code": code, "name": name, "settings": settings or {}})
    try:
        out, err = proc.communicate(payload, timeout=timeout_s)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.communicate()
        logger.warning("worker for %s killed after %.1fs", name, timeout_s)
        return -1, "", "TIMEOUT"

    return proc.returncode, out or "", err or ""


def _host_error(code: str, message: str, name: str) -> Dict[str, Any]:
    return {"code": code, "name": code.title().replace("_", " "), "message": message, "file": name, "line": None, "column": None}


def run_in_subprocess(
    code: str,
    *,
    name: str = "<stdin>",
    settings: Optional[Dict[str, Any]] = None,
    timeout_s: float = 2,
) -> Dict[str, Any]:
    """Run `code` in a worker and return the `{value, type, errors}` dict.

    Timeouts and worker crashes are reported as a single error with code
    TIMEOUT or SUBPROCESS_FAILED.
    """
    rc, out, err = run_code_in_subprocess(code, timeout_s, name=name, settings=settings)
    if rc == -1 and err == "TIMEOUT":
        return {"value": None, "type": None, "errors": [_host_error("TIMEOUT", "Time limit exceeded", name)]}
    if rc != 0:
        logger.error("worker for %s exited with %d: %s", name, rc, err.strip())
        return {"value": None, "type": None, "errors": [_host_error("SUBPROCESS_FAILED", err.strip() or f"exit code {rc}", name)]}
    try:
        return json.loads(out)
    except json.JSONDecodeError:
        logger.error("worker for %s returned invalid JSON: %r", name, out[:200])
        return {"value": None, "type": None, "errors": [_host_error("SUBPROCESS_FAILED", "Invalid worker response", name)]}
