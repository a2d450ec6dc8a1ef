"""Order to CRM synchronization status tracking."""

from .processor import OrderEvent, OrderEventKind, OrderLineItem, OrderSyncProcessor
from .reconciler import SyncReconciler, build_record, derive_status
from .results import CrmOutcome, serialize_payload, summarize_response
from .routing import GiftRouting
from .store import SyncRecordData, SyncStatusStore, SyncStoreError

__all__ = [
    "CrmOutcome",
    "GiftRouting",
    "OrderEvent",
    "OrderEventKind",
    "OrderLineItem",
    "OrderSyncProcessor",
    "SyncReconciler",
    "SyncRecordData",
    "SyncStatusStore",
    "SyncStoreError",
    "build_record",
    "derive_status",
    "serialize_payload",
    "summarize_response",
]
