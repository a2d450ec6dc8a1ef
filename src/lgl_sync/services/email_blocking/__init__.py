"""Email suppression for non-production environments."""

from .gate import BlockDecision, BlockingStatus, BlockReason, EmailBlockingGate, OutgoingEmail, build_gate, decide
from .log import BlockedEmailEntry, BlockedEmailLog, DEFAULT_LOG_CAPACITY, message_preview
from .state import (
    EmailBlockingSettings,
    EmailBlockingStateStore,
    EmailBlockingStoreError,
    InvalidSettingsPayloadError,
    normalize_address,
)

__all__ = [
    "BlockDecision",
    "BlockReason",
    "BlockedEmailEntry",
    "BlockedEmailLog",
    "BlockingStatus",
    "DEFAULT_LOG_CAPACITY",
    "EmailBlockingGate",
    "EmailBlockingSettings",
    "EmailBlockingStateStore",
    "EmailBlockingStoreError",
    "InvalidSettingsPayloadError",
    "OutgoingEmail",
    "build_gate",
    "decide",
    "message_preview",
    "normalize_address",
]
