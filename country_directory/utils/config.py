from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class APIConfig:
    base_url: str
    timeout_seconds: float
    # REST Countries rejects /all without a `fields` selector (max 10 fields).
    list_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class SnapshotConfig:
    path: Path


@dataclass(frozen=True)
class PreferencesConfig:
    redis_url_env: str
    key: str = "theme"


def _project_root() -> Path:
    # .../country_directory/utils/config.py -> project root is 3 parents up.
    return Path(__file__).resolve().parents[2]


def _resolve_config_path(path: str | Path | None, env_var: str, default_name: str) -> Path:
    load_dotenv()
    return Path(path or os.getenv(env_var) or (_project_root() / "config" / default_name))


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    return yaml.safe_load(p.read_text(encoding="utf-8")) or {}


def load_api_config(path: str | Path | None = None) -> APIConfig:
    """
    Load REST Countries API config from YAML.

    Precedence:
    - explicit `path`
    - env `COUNTRY_DIRECTORY_API_CONFIG`
    - project default `config/api.yaml`
    """
    cfg_path = _resolve_config_path(path, "COUNTRY_DIRECTORY_API_CONFIG", "api.yaml")
    api = load_yaml(cfg_path).get("api") or {}

    base_url = api.get("base_url")
    timeout_seconds = api.get("timeout_seconds")
    list_fields = api.get("list_fields") or []

    if not base_url:
        raise ValueError(f"Missing api.base_url in {cfg_path}")
    if timeout_seconds is None:
        raise ValueError(f"Missing api.timeout_seconds in {cfg_path}")
    if not isinstance(list_fields, list):
        raise ValueError(f"api.list_fields must be a list in {cfg_path}")
    if len(list_fields) > 10:
        raise ValueError(f"api.list_fields allows at most 10 fields in {cfg_path}")

    return APIConfig(
        base_url=str(base_url),
        timeout_seconds=float(timeout_seconds),
        list_fields=tuple(str(f) for f in list_fields),
    )


def load_snapshot_config(path: str | Path | None = None) -> SnapshotConfig:
    """
    Load local snapshot location. Relative paths resolve against the project root.

    Precedence: explicit `path`, env `COUNTRY_DIRECTORY_SNAPSHOT_CONFIG`, `config/snapshot.yaml`.
    """
    cfg_path = _resolve_config_path(path, "COUNTRY_DIRECTORY_SNAPSHOT_CONFIG", "snapshot.yaml")
    snap = load_yaml(cfg_path).get("snapshot") or {}

    raw = snap.get("path")
    if not raw:
        raise ValueError(f"Missing snapshot.path in {cfg_path}")

    p = Path(str(raw))
    if not p.is_absolute():
        p = _project_root() / p
    return SnapshotConfig(path=p)


def load_preferences_config(path: str | Path | None = None) -> PreferencesConfig:
    cfg_path = _resolve_config_path(path, "COUNTRY_DIRECTORY_PREFERENCES_CONFIG", "preferences.yaml")
    prefs = load_yaml(cfg_path).get("preferences") or {}

    redis_url_env = prefs.get("redis_url_env")
    if not redis_url_env:
        raise ValueError(f"Missing preferences.redis_url_env in {cfg_path}")

    return PreferencesConfig(
        redis_url_env=str(redis_url_env),
        key=str(prefs.get("key") or "theme"),
    )
