"""The caller of an operation, as vouched for by the identity layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
