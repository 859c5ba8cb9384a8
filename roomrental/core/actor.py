"""
The acting user, passed explicitly into every service call.
"""

from dataclasses import dataclass

from roomrental.models.user import UserRole


@dataclass(frozen=True)
class Actor:
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD
