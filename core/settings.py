from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_DB_URL = "sqlite:///./data/sqlforge.db"

# Row and history limits are ceilings: settings may lower them, never raise them.
DEFAULTS: Dict[str, Any] = {
    "SQLFORGE_DB_URL": DEFAULT_DB_URL,
    "SQLFORGE_ROW_LIMIT": 5000,
    "SQLFORGE_QUERY_TIMEOUT": 10,
    "SQLFORGE_HISTORY_LIMIT": 100,
    "SQLFORGE_DEBUG": False,
    "SQLFORGE_SEED": True,
}

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        return {}
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return data if isinstance(data, dict) else {}


class Settings:
    """Lightweight accessor resolving keys from overrides, env, then YAML."""

    def __init__(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        config_path: Optional[str] = None,
    ) -> None:
        self.overrides: Dict[str, Any] = dict(overrides or {})
        path = config_path or self.overrides.get("SQLFORGE_CONFIG") or os.getenv("SQLFORGE_CONFIG")
        self.config_path = path
        self._file_values = _load_yaml(path)

    # ------------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        if key in self.overrides and self.overrides[key] is not None:
            return self.overrides[key]

        env_val = os.getenv(key)
        if env_val is not None:
            return env_val

        if key in self._file_values and self._file_values[key] is not None:
            return self._file_values[key]

        if default is not None:
            return default
        return DEFAULTS.get(key)

    # ------------------------------------------------------------------
    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key, default=default)
        if value is None:
            return default
        if isinstance(value, str):
            return value
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    # ------------------------------------------------------------------
    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        value = self.get(key, default=default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        if value is None:
            return default
        return bool(value)

    # ------------------------------------------------------------------
    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(key, default=default)
        if value is None:
            return default
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            return default if default is not None else DEFAULTS.get(key)

    # ------------------------------------------------------------------
    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = self.get(key, default=default)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            fallback = default if default is not None else DEFAULTS.get(key)
            return float(fallback) if fallback is not None else None

    # ------------------------------------------------------------------
    def db_url(self) -> str:
        return self.get_string("SQLFORGE_DB_URL") or DEFAULT_DB_URL

    def row_limit(self) -> int:
        ceiling = DEFAULTS["SQLFORGE_ROW_LIMIT"]
        return min(ceiling, max(1, self.get_int("SQLFORGE_ROW_LIMIT") or ceiling))

    def query_timeout(self) -> float:
        value = self.get_float("SQLFORGE_QUERY_TIMEOUT")
        return value if value and value > 0 else float(DEFAULTS["SQLFORGE_QUERY_TIMEOUT"])

    def history_limit(self) -> int:
        ceiling = DEFAULTS["SQLFORGE_HISTORY_LIMIT"]
        return min(ceiling, max(1, self.get_int("SQLFORGE_HISTORY_LIMIT") or ceiling))

    def debug(self) -> bool:
        return bool(self.get_bool("SQLFORGE_DEBUG", default=False))


__all__ = ["Settings", "DEFAULTS", "DEFAULT_DB_URL"]
