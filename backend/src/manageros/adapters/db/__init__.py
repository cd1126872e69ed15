"""Application database adapters."""

from manageros.adapters.db.app_db import AppDatabase, decode_json
from manageros.adapters.db.tenant_scope import OrganizationScope

__all__ = ["AppDatabase", "OrganizationScope", "decode_json"]
