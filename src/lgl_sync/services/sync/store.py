"""Persistence for per-order sync records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.errors import StorageError
from lgl_sync.models.sync_record import MatchMethodEnum, OrderSyncRecord, SyncStatusEnum


class SyncStoreError(StorageError):
    """Raised when sync records cannot be read or written."""


@dataclass(frozen=True, slots=True)
class SyncRecordData:
    """Full replacement contents for an order's sync record."""

    order_id: str
    status: SyncStatusEnum
    constituent_id: str | None
    match_method: MatchMethodEnum
    matched_email: str | None
    payment_id: str | None
    constituent_response_raw: str | None
    payment_response_raw: str | None
    synced_at: datetime


class SyncStatusStore:
    """One row per order, overwritten on every reconciliation (last write wins)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, order_id: str) -> OrderSyncRecord | None:
        try:
            return await self._session.get(OrderSyncRecord, order_id)
        except SQLAlchemyError as exc:
            raise SyncStoreError(f"Failed to load sync record for order {order_id}") from exc

    async def upsert(self, data: SyncRecordData) -> OrderSyncRecord:
        """Insert or fully overwrite the record for ``data.order_id`` and commit."""

        try:
            record = await self._write(data)
            await self._session.commit()
        except IntegrityError:
            # A concurrent invocation inserted the row first; overwrite it.
            await self._session.rollback()
            try:
                record = await self._write(data)
                await self._session.commit()
            except SQLAlchemyError as exc:
                await self._session.rollback()
                raise SyncStoreError(f"Failed to store sync record for order {data.order_id}") from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise SyncStoreError(f"Failed to store sync record for order {data.order_id}") from exc

        logger.info(
            "Order sync record stored",
            order_id=data.order_id,
            status=data.status.value,
            constituent_id=data.constituent_id,
            payment_id=data.payment_id,
        )
        return record

    async def list(
        self,
        *,
        status: SyncStatusEnum | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[OrderSyncRecord]:
        """Return records newest first, optionally filtered by status."""

        stmt = select(OrderSyncRecord)
        if status is not None:
            stmt = stmt.where(OrderSyncRecord.status == status)
        stmt = (
            stmt.order_by(OrderSyncRecord.synced_at.desc(), OrderSyncRecord.order_id.desc())
            .limit(max(limit, 0))
            .offset(max(offset, 0))
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise SyncStoreError("Failed to list sync records") from exc
        return list(result.scalars())

    async def status_counts(self) -> dict[str, int]:
        stmt = select(OrderSyncRecord.status, func.count()).group_by(OrderSyncRecord.status)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise SyncStoreError("Failed to count sync records") from exc

        counts = {status.value: 0 for status in SyncStatusEnum}
        for status, count in result.all():
            counts[SyncStatusEnum(status).value] = int(count)
        counts["total"] = sum(counts[status.value] for status in SyncStatusEnum)
        return counts

    async def _write(self, data: SyncRecordData) -> OrderSyncRecord:
        record = await self._session.get(OrderSyncRecord, data.order_id)
        if record is None:
            record = OrderSyncRecord(order_id=data.order_id)
            self._session.add(record)

        record.status = data.status
        record.constituent_id = data.constituent_id
        record.match_method = data.match_method
        record.matched_email = data.matched_email
        record.payment_id = data.payment_id
        record.constituent_response_raw = data.constituent_response_raw
        record.payment_response_raw = data.payment_response_raw
        record.synced_at = data.synced_at
        await self._session.flush()
        return record


__all__ = ["SyncRecordData", "SyncStatusStore", "SyncStoreError"]
