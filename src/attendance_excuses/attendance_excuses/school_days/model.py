from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ClosedDay:
    """Institution-wide non-teaching day on top of the weekly pattern."""

    closed_day_id: int
    day: date
    description: Optional[str] = None
