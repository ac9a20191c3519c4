from __future__ import annotations

from dataclasses import dataclass

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """The caller as reported by the hosting session layer."""

    user_id: str
    role: Role = Role.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_act_for(self, user_id: str) -> bool:
        return self.is_admin or str(user_id) == self.user_id

    def require_self_or_admin(self, user_id: str) -> None:
        if not self.can_act_for(user_id):
            raise AuthorizationError("You can only act on your own account")
