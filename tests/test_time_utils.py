from __future__ import annotations

from datetime import datetime, timezone

from core import advisor
from core.time_utils import utc_now_iso


def test_timestamps_are_utc_iso():
    parsed = datetime.fromisoformat(utc_now_iso())
    assert parsed.utcoffset() == timezone.utc.utcoffset(None)


def test_advisor_uses_neutral_clock():
    assert advisor.utc_now_iso is utc_now_iso
    assert datetime.fromisoformat(advisor.analyze("SELECT 1").timestamp).tzinfo is not None
