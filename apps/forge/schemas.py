"""Request parsing for the forge API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.sql_exec import ExecutionMode


@dataclass
class QueryRequest:
    sql: str = ""
    user_id: Optional[str] = None
    mode: ExecutionMode = ExecutionMode.READ

    @classmethod
    def from_payload(cls, payload: Any) -> "QueryRequest":
        data: Dict[str, Any] = payload if isinstance(payload, dict) else {}
        sql = data.get("sql")
        user_id = data.get("userId")
        return cls(
            sql=sql if isinstance(sql, str) else "",
            user_id=user_id if isinstance(user_id, str) else None,
            mode=ExecutionMode.parse(data.get("mode")),
        )

    @property
    def is_blank(self) -> bool:
        return not self.sql.strip()


__all__ = ["QueryRequest"]
