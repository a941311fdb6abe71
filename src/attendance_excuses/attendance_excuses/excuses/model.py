from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class Excuse:
    """Parent-submitted absence excuse over an inclusive date range."""

    excuse_id: int
    child_id: int
    from_date: date
    to_date: date
    submitted_by: int
    submitted_at: datetime
    auto_approved: bool
    reason: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date

    def snapshot(self) -> dict:
        """Field values recorded in the audit trail."""
        return {
            "child_id": self.child_id,
            "from_date": self.from_date.isoformat(),
            "to_date": self.to_date.isoformat(),
            "reason": self.reason,
            "auto_approved": self.auto_approved,
        }
