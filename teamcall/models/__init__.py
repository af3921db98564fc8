from teamcall.models.base import Base
from teamcall.models.user import User

__all__ = [
    "Base",
    "User",
]
