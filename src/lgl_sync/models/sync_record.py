from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SqlEnum, String, Text, func

from lgl_sync.db.base import Base


class SyncStatusEnum(str, Enum):
    UNSYNCED = "unsynced"
    PARTIAL = "partial"
    SYNCED = "synced"


class MatchMethodEnum(str, Enum):
    EMAIL = "email"
    NAME = "name"
    MANUAL = "manual"
    NONE = "none"


class OrderSyncRecord(Base):
    """Latest CRM synchronization outcome for a store order (one row per order)."""

    __tablename__ = "order_sync_records"

    order_id = Column(String(64), primary_key=True)
    status = Column(
        SqlEnum(
            SyncStatusEnum,
            name="order_sync_status_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    constituent_id = Column(String(64), nullable=True)
    match_method = Column(
        SqlEnum(
            MatchMethodEnum,
            name="order_sync_match_method_enum",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=MatchMethodEnum.NONE,
    )
    matched_email = Column(String(320), nullable=True)
    payment_id = Column(String(64), nullable=True)
    constituent_response_raw = Column(Text, nullable=True)
    payment_response_raw = Column(Text, nullable=True)
    synced_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
