from teamcall.core.config import settings
from teamcall.core.db import get_db

__all__ = ["settings", "get_db"]
