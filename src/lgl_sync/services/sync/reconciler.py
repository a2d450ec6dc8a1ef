"""Fold CRM outcomes for an order into its sync record."""

from __future__ import annotations

from datetime import datetime, timezone

from lgl_sync.models.sync_record import MatchMethodEnum, OrderSyncRecord, SyncStatusEnum

from .results import CrmOutcome, serialize_payload
from .store import SyncRecordData, SyncStatusStore


def derive_status(constituent_ok: bool, payment_ok: bool) -> SyncStatusEnum:
    if constituent_ok and payment_ok:
        return SyncStatusEnum.SYNCED
    if constituent_ok or payment_ok:
        return SyncStatusEnum.PARTIAL
    return SyncStatusEnum.UNSYNCED


def build_record(
    order_id: str,
    constituent: CrmOutcome | None,
    payment: CrmOutcome | None,
    *,
    now: datetime,
) -> SyncRecordData:
    """Compute the full record for an order from fresh outcomes.

    ``None`` outcomes mean the call never produced a response and count as
    failures. Ids are only carried over from usable successes, which keeps the
    status/id invariant intact.
    """

    constituent = constituent or CrmOutcome.failure()
    payment = payment or CrmOutcome.failure()

    constituent_ok = constituent.ok
    payment_ok = payment.ok
    return SyncRecordData(
        order_id=str(order_id),
        status=derive_status(constituent_ok, payment_ok),
        constituent_id=constituent.external_id if constituent_ok else None,
        match_method=constituent.match_method if constituent_ok else MatchMethodEnum.NONE,
        matched_email=constituent.matched_email if constituent_ok else None,
        payment_id=payment.external_id if payment_ok else None,
        constituent_response_raw=serialize_payload(constituent.payload),
        payment_response_raw=serialize_payload(payment.payload),
        synced_at=now,
    )


class SyncReconciler:
    """Derive and persist the sync status of an order."""

    def __init__(self, store: SyncStatusStore) -> None:
        self._store = store

    async def existing(self, order_id: str) -> OrderSyncRecord | None:
        return await self._store.get(str(order_id))

    async def reconcile(
        self,
        order_id: str,
        constituent: CrmOutcome | None,
        payment: CrmOutcome | None,
        *,
        now: datetime | None = None,
    ) -> OrderSyncRecord:
        data = build_record(
            order_id,
            constituent,
            payment,
            now=now or datetime.now(timezone.utc),
        )
        return await self._store.upsert(data)


__all__ = ["SyncReconciler", "build_record", "derive_status"]
