from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Child:
    child_id: int
    first_name: str
    last_name: str
    active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
