from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import Excuse


class ExcuseRepository(Protocol):
    def create(
        self,
        *,
        child_id: int,
        from_date: date,
        to_date: date,
        reason: Optional[str],
        submitted_by: int,
        submitted_at: datetime,
        auto_approved: bool,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, excuse_id: int) -> Optional[Excuse]:
        raise NotImplementedError

    def find_covering(self, *, child_id: int, day: date) -> Optional[Excuse]:
        """Excuse of the child whose range contains ``day``.

        When several overlap, the most recently submitted one wins.
        """

        raise NotImplementedError

    def update(
        self,
        *,
        excuse_id: int,
        from_date: date,
        to_date: date,
        reason: Optional[str],
        auto_approved: bool,
    ) -> bool:
        raise NotImplementedError

    def delete(self, excuse_id: int) -> bool:
        raise NotImplementedError

    def list_for_child(self, *, child_id: int, limit: int) -> Sequence[Excuse]:
        """Newest submission first."""

        raise NotImplementedError

    def list_filtered(
        self,
        *,
        child_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        auto_approved: Optional[bool] = None,
        submitted_since: Optional[datetime] = None,
        limit: int = 100,
    ) -> Sequence[Excuse]:
        """Filter on from_date within [start, end]; newest submission first."""

        raise NotImplementedError
