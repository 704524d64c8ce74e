# Database Models
from pet_access.models.access_grant import AccessGrantRecord
from pet_access.models.base import Base

__all__ = [
    "AccessGrantRecord",
    "Base",
]
