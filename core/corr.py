"""Correlation identifier utilities for request-scoped logging."""
from __future__ import annotations

from contextvars import ContextVar
import uuid


_corr_id: ContextVar[str | None] = ContextVar("corr_id", default=None)


def set_corr_id(value: str | None = None) -> str:
    """Set the current correlation identifier.

    If ``value`` is empty a new identifier is generated using ``uuid4``,
    prefixed with ``"req:"``.
    """

    cid = (value or "").strip() or f"req:{uuid.uuid4()}"
    _corr_id.set(cid)
    return cid


def get_corr_id() -> str | None:
    return _corr_id.get()


def clear_corr_id() -> None:
    _corr_id.set(None)
