"""
Identidad del usuario que hace la petición.

Los servicios reciben la identidad ya resuelta (id + rol); nunca la calculan.
"""
import uuid
from dataclasses import dataclass
from core.config import settings


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == settings.ADMIN_ROLE

    def can_access(self, user_id: uuid.UUID) -> bool:
        """El propio usuario o un administrador"""
        return self.is_admin or self.id == user_id

    @classmethod
    def from_user(cls, user) -> "Identity":
        return cls(id=user.id, role=user.role)
