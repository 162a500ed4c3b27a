# storefront/models/actor.py
from enum import Enum
from .base import FrozenModel

class ActorRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"

class ActorContext(FrozenModel):
    """Who is asking: passed explicitly to every order operation"""
    user_id: int
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN
