from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any


log = logging.getLogger("iskascrum.config")

CONFIG_FILENAME = "config.json"
DB_FILENAME = "scrum.db"
HOME_DIRNAME = ".iska-scrum"

BACKEND_SQLITE = "sqlite"
BACKEND_MYSQL = "mysql"
BACKEND_POSTGRESQL = "postgresql"
BACKEND_TYPES = (BACKEND_SQLITE, BACKEND_MYSQL, BACKEND_POSTGRESQL)


class ConfigError(RuntimeError):
    pass


def resolve_home() -> Path:
    raw = (os.getenv("ISKA_SCRUM_HOME", "") or "").strip()
    if not raw:
        return Path.home() / HOME_DIRNAME
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = (Path.cwd() / p).resolve()
    return p


def default_config_path() -> Path:
    return resolve_home() / CONFIG_FILENAME


def default_config(home: Path) -> dict[str, Any]:
    return {
        "type": BACKEND_SQLITE,
        "sqlite": {
            "path": str(home / DB_FILENAME),
        },
        "mysql": {
            "host": "localhost",
            "port": 3306,
            "user": "root",
            "password": "",
            "database": "iska_scrum",
        },
        "postgresql": {
            "host": "localhost",
            "port": 5432,
            "user": "postgres",
            "password": "",
            "database": "iska_scrum",
        },
    }


def backend_settings(config: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Return the active backend identifier and its settings block.

    Only the block matching ``type`` is consulted; the others are kept in
    the document so switching engines does not lose what was entered.
    """
    backend = str(config.get("type") or "").strip().lower()
    settings = config.get(backend) or {}
    if not isinstance(settings, dict):
        raise ConfigError(f"{backend} settings must be a mapping.")
    return backend, dict(settings)


class ConfigStore:
    def __init__(self, config_path: Path | None = None) -> None:
        self._path = Path(config_path) if config_path is not None else default_config_path()
        self._config: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        defaults = default_config(self._path.parent)

        if not self._path.exists():
            log.info("Writing default configuration to %s", self._path)
            return self.save(defaults)

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config {self._path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError("Config root must be a JSON object.")

        for key, value in defaults.items():
            if key not in raw:
                raw[key] = copy.deepcopy(value)
        self._config = raw
        return self._config

    def save(self, config: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(config, dict):
            raise ConfigError("Config root must be a JSON object.")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(config, ensure_ascii=False, indent=2), encoding="utf-8")
        self._config = copy.deepcopy(config)
        return self._config

    def get(self) -> dict[str, Any]:
        if self._config is None:
            return self.load()
        return self._config
