"""SQLAlchemy models package."""

from .member_renewal import MemberRenewal  # noqa: F401
from .sync_record import MatchMethodEnum, OrderSyncRecord, SyncStatusEnum  # noqa: F401
