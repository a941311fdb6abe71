from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Child


class ChildRepository(Protocol):
    def get_by_id(self, child_id: int) -> Optional[Child]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Child]:
        """Active children ordered by last name, first name."""

        raise NotImplementedError

    def list_for_parent(self, parent_id: int) -> Sequence[Child]:
        raise NotImplementedError

    def is_parent_of(self, parent_id: int, child_id: int) -> bool:
        raise NotImplementedError
