from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from lgl_sync.api.dependencies.security import require_admin_api_key
from lgl_sync.api.dependencies.services import get_order_processor, get_sync_store
from lgl_sync.models.sync_record import MatchMethodEnum, OrderSyncRecord, SyncStatusEnum
from lgl_sync.services.sync import (
    OrderEvent,
    OrderEventKind,
    OrderLineItem,
    OrderSyncProcessor,
    SyncStatusStore,
    summarize_response,
)

router = APIRouter(
    prefix="/sync",
    tags=["Sync"],
    dependencies=[Depends(require_admin_api_key)],
)


class SyncRecordResponse(BaseModel):
    order_id: str
    status: SyncStatusEnum
    constituent_id: str | None = None
    match_method: MatchMethodEnum
    matched_email: str | None = None
    payment_id: str | None = None
    synced_at: datetime
    constituent_response: dict[str, Any] | str | None = None
    payment_response: dict[str, Any] | str | None = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_record(cls, record: OrderSyncRecord, *, include_raw: bool = True) -> "SyncRecordResponse":
        return cls(
            order_id=record.order_id,
            status=record.status,
            constituent_id=record.constituent_id,
            match_method=record.match_method,
            matched_email=record.matched_email,
            payment_id=record.payment_id,
            synced_at=record.synced_at,
            constituent_response=summarize_response(record.constituent_response_raw) if include_raw else None,
            payment_response=summarize_response(record.payment_response_raw) if include_raw else None,
        )


class SyncRecordListResponse(BaseModel):
    items: list[SyncRecordResponse]
    limit: int
    offset: int


class OrderLineItemRequest(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    total: Decimal = Decimal("0")
    sku: str | None = None
    category: str | None = None


class OrderEventRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    kind: OrderEventKind
    customer_email: str | None = None
    first_name: str = ""
    last_name: str = ""
    total: Decimal = Decimal("0")
    payment_reference: str | None = None
    payment_method: str | None = None
    constituent_id: str | None = None
    line_items: list[OrderLineItemRequest] = Field(default_factory=list)
    occurred_at: datetime | None = None

    def to_event(self) -> OrderEvent:
        return OrderEvent(
            order_id=self.order_id,
            kind=self.kind,
            customer_email=self.customer_email,
            first_name=self.first_name,
            last_name=self.last_name,
            total=self.total,
            payment_reference=self.payment_reference,
            payment_method=self.payment_method,
            constituent_id=self.constituent_id,
            line_items=[
                OrderLineItem(
                    name=item.name,
                    quantity=item.quantity,
                    total=item.total,
                    sku=item.sku,
                    category=item.category,
                )
                for item in self.line_items
            ],
            occurred_at=self.occurred_at,
        )


class OrderEventResponse(BaseModel):
    processed: bool
    record: SyncRecordResponse | None = None


@router.get("/orders/{order_id}", response_model=SyncRecordResponse)
async def get_sync_record(
    order_id: str,
    store: SyncStatusStore = Depends(get_sync_store),
) -> SyncRecordResponse:
    record = await store.get(order_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sync record not found")
    return SyncRecordResponse.from_record(record)


@router.get("/orders", response_model=SyncRecordListResponse)
async def list_sync_records(
    status_filter: SyncStatusEnum | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: SyncStatusStore = Depends(get_sync_store),
) -> SyncRecordListResponse:
    """List sync records newest first."""

    records = await store.list(status=status_filter, limit=limit, offset=offset)
    return SyncRecordListResponse(
        items=[SyncRecordResponse.from_record(record, include_raw=False) for record in records],
        limit=limit,
        offset=offset,
    )


@router.get("/summary")
async def sync_summary(store: SyncStatusStore = Depends(get_sync_store)) -> dict[str, int]:
    return await store.status_counts()


@router.post("/orders/events", response_model=OrderEventResponse, status_code=status.HTTP_202_ACCEPTED)
async def receive_order_event(
    payload: OrderEventRequest,
    processor: OrderSyncProcessor = Depends(get_order_processor),
) -> OrderEventResponse:
    record = await processor.handle_event(payload.to_event())
    if record is None:
        return OrderEventResponse(processed=False)
    return OrderEventResponse(processed=True, record=SyncRecordResponse.from_record(record))
