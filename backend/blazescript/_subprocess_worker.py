"""Subprocess worker that runs one BlazeScript program.

Reads a single JSON object from stdin with shape
{"code": "...", "name": "...", "settings": {...}} and writes the
`{value, type, errors}` dict to stdout. The calling process enforces the
wall-clock timeout and resource caps.
"""

import json
import sys

from backend.blazescript.interpreter import outcome_to_dict, run


def main() -> None:
    raw = sys.stdin.read()
    try:
        payload = json.loads(raw)
        code = payload.get("code", "")
        name = payload.get("name") or "<stdin>"
        settings = payload.get("settings") or {}
    except (json.JSONDecodeError, AttributeError) as e:
        print(json.dumps({"value": None, "type": None, "errors": [{"code": "BAD_PAYLOAD", "message": str(e)}]}))
        sys.exit(1)

    print(json.dumps(outcome_to_dict(run(name, code, settings=settings))))


if __name__ == "__main__":
    main()
