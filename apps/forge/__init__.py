from __future__ import annotations

from typing import Any

__all__ = ["create_forge_blueprint", "QueryRequest"]


def __getattr__(name: str) -> Any:  # pragma: no cover - simple lazy importer
    if name == "create_forge_blueprint":
        from .routes import create_forge_blueprint

        return create_forge_blueprint
    if name == "QueryRequest":
        from .schemas import QueryRequest

        return QueryRequest
    raise AttributeError(name)
