from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from lgl_sync.models.sync_record import MatchMethodEnum, SyncStatusEnum
from lgl_sync.services.sync import SyncRecordData, SyncStatusStore, SyncStoreError

BASE = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


def _record(order_id: str, status: SyncStatusEnum, minutes: int) -> SyncRecordData:
    synced = status is SyncStatusEnum.SYNCED
    return SyncRecordData(
        order_id=order_id,
        status=status,
        constituent_id="C-1" if status is not SyncStatusEnum.UNSYNCED else None,
        match_method=MatchMethodEnum.NAME if status is not SyncStatusEnum.UNSYNCED else MatchMethodEnum.NONE,
        matched_email=None,
        payment_id="P-1" if synced else None,
        constituent_response_raw=None,
        payment_response_raw=None,
        synced_at=BASE + timedelta(minutes=minutes),
    )


@pytest.mark.asyncio
async def test_list_is_newest_first_and_filterable(session_factory) -> None:
    async with session_factory() as session:
        store = SyncStatusStore(session)
        await store.upsert(_record("A", SyncStatusEnum.SYNCED, 1))
        await store.upsert(_record("B", SyncStatusEnum.PARTIAL, 3))
        await store.upsert(_record("C", SyncStatusEnum.UNSYNCED, 2))
        await store.upsert(_record("D", SyncStatusEnum.PARTIAL, 5))

        everything = await store.list()
        partial = await store.list(status=SyncStatusEnum.PARTIAL)
        page = await store.list(limit=2, offset=1)

    assert [record.order_id for record in everything] == ["D", "B", "C", "A"]
    assert [record.order_id for record in partial] == ["D", "B"]
    assert [record.order_id for record in page] == ["B", "C"]


@pytest.mark.asyncio
async def test_status_counts_include_zeroes(session_factory) -> None:
    async with session_factory() as session:
        store = SyncStatusStore(session)
        await store.upsert(_record("A", SyncStatusEnum.PARTIAL, 1))
        await store.upsert(_record("B", SyncStatusEnum.PARTIAL, 2))

        counts = await store.status_counts()

    assert counts == {"unsynced": 0, "partial": 2, "synced": 0, "total": 2}


@pytest.mark.asyncio
async def test_storage_failures_raise_store_error(session_factory) -> None:
    async with session_factory() as session:
        store = SyncStatusStore(session)

        async def broken_execute(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        session.execute = broken_execute  # type: ignore[method-assign]

        with pytest.raises(SyncStoreError) as excinfo:
            await store.list()

    assert isinstance(excinfo.value.__cause__, OperationalError)
