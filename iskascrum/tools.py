"""One-shot JSON tools: one request on stdin, one response on stdout.

Each tool validates its request, opens its own core, runs a single
operation and closes it. The response is ``{"ok": true, ...}`` with
exit code 0, or ``{"ok": false, "error": message}`` with exit code 1.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from iskascrum.api import to_plain
from iskascrum.core import Core


log = logging.getLogger("iskascrum.tools")

Handler = Callable[[Core, dict[str, Any]], dict[str, Any]]
Check = Callable[[dict[str, Any]], None]


def _read_request(stdin: IO[str]) -> dict[str, Any]:
    raw = stdin.read()
    if not raw.strip():
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("request must be a JSON object")
    return data


def _write(stdout: IO[str], payload: dict[str, Any]) -> None:
    stdout.write(json.dumps(payload, ensure_ascii=False))
    stdout.flush()


def _run(
    stdin: IO[str],
    stdout: IO[str],
    handler: Handler,
    *,
    check: Check | None = None,
    config_path: Path | None = None,
) -> int:
    try:
        request = _read_request(stdin)
        if check is not None:
            check(request)
        with Core(config_path) as core:
            result = handler(core, request)
    except Exception as e:
        log.error("Tool failed: %s", e)
        _write(stdout, {"ok": False, "error": str(e)})
        return 1
    _write(stdout, {"ok": True, **to_plain(result)})
    return 0


def _require_name(request: dict[str, Any]) -> None:
    if not request.get("name"):
        raise ValueError("name is required")


def _require_project_id(request: dict[str, Any]) -> None:
    if request.get("project_id") is None:
        raise ValueError("project_id is required")


def create_project(stdin: IO[str], stdout: IO[str], *, config_path: Path | None = None) -> int:
    def handler(core: Core, request: dict[str, Any]) -> dict[str, Any]:
        project = core.projects.create(
            {
                "name": request.get("name"),
                "description": request.get("description", ""),
                "status": request.get("status", "active"),
            }
        )
        return {"project": project}

    return _run(stdin, stdout, handler, check=_require_name, config_path=config_path)


def list_issues(stdin: IO[str], stdout: IO[str], *, config_path: Path | None = None) -> int:
    def handler(core: Core, request: dict[str, Any]) -> dict[str, Any]:
        return {"issues": core.issues.list(request["project_id"])}

    return _run(stdin, stdout, handler, check=_require_project_id, config_path=config_path)


def list_projects(stdin: IO[str], stdout: IO[str], *, config_path: Path | None = None) -> int:
    def handler(core: Core, request: dict[str, Any]) -> dict[str, Any]:
        return {"projects": core.projects.list()}

    return _run(stdin, stdout, handler, config_path=config_path)


TOOLS: dict[str, Callable[..., int]] = {
    "create-project": create_project,
    "list-issues": list_issues,
    "list-projects": list_projects,
}
