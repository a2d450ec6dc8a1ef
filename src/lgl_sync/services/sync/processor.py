"""Turn store order events into CRM calls and a reconciled sync record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from loguru import logger

from lgl_sync.models.sync_record import MatchMethodEnum, OrderSyncRecord, SyncStatusEnum
from lgl_sync.services.lgl import LglClient

from .reconciler import SyncReconciler
from .results import CrmOutcome
from .routing import GiftRouting


class OrderEventKind(str, Enum):
    CREATED = "created"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class OrderLineItem:
    name: str
    quantity: int = 1
    total: Decimal = Decimal("0")
    sku: str | None = None
    category: str | None = None


@dataclass(slots=True)
class OrderEvent:
    """A lifecycle event delivered by the store for one order."""

    order_id: str
    kind: OrderEventKind
    customer_email: str | None = None
    first_name: str = ""
    last_name: str = ""
    total: Decimal = Decimal("0")
    payment_reference: str | None = None
    payment_method: str | None = None
    constituent_id: str | None = None
    line_items: list[OrderLineItem] = field(default_factory=list)
    occurred_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name.strip(), self.last_name.strip()) if part)


class OrderSyncProcessor:
    """Resolve the constituent, post the payment, then reconcile.

    Redelivered events reuse what the stored record already holds: a synced
    order is returned untouched, and a partial one only retries the missing
    half, so a gift is never posted twice for the same order.
    """

    def __init__(
        self,
        reconciler: SyncReconciler,
        client: LglClient,
        *,
        gift_type_id: int | None = None,
        routing: GiftRouting | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._client = client
        self._gift_type_id = gift_type_id
        self._routing = routing or GiftRouting()

    async def handle_event(self, event: OrderEvent) -> OrderSyncRecord | None:
        if event.kind is OrderEventKind.CREATED:
            logger.info("Order created, awaiting payment before sync", order_id=event.order_id)
            return None
        if event.kind is OrderEventKind.CANCELLED:
            logger.info("Order cancelled, sync skipped", order_id=event.order_id)
            return None

        existing = await self._reconciler.existing(event.order_id)
        if existing is not None and existing.status is SyncStatusEnum.SYNCED:
            logger.info("Order already synchronized, redelivery ignored", order_id=event.order_id)
            return existing

        constituent = _stored_constituent(existing) or await self._resolve_constituent(event)
        if existing is not None and existing.payment_id:
            payment = CrmOutcome.success(existing.payment_id, payload=existing.payment_response_raw)
        elif constituent.ok:
            payment = await self._record_payment(constituent.external_id, event)
        else:
            payment = CrmOutcome.failure(
                {"success": False, "error": "Payment not attempted: no LGL constituent for order"}
            )

        record = await self._reconciler.reconcile(
            event.order_id,
            constituent,
            payment,
            now=datetime.now(timezone.utc),
        )
        logger.info(
            "Order synchronized with LGL",
            order_id=event.order_id,
            status=record.status.value,
            match_method=record.match_method.value,
        )
        return record

    async def _resolve_constituent(self, event: OrderEvent) -> CrmOutcome:
        if event.constituent_id:
            response = await self._client.get_constituent(event.constituent_id)
            return CrmOutcome.from_response(
                response,
                match_method=MatchMethodEnum.MANUAL,
                matched_email=event.customer_email,
            )

        emails = [event.customer_email] if event.customer_email else []
        match = await self._client.find_constituent(event.full_name, emails)
        if match is not None:
            return CrmOutcome.success(
                match.constituent_id,
                payload=match.response,
                match_method=MatchMethodEnum(match.method),
                matched_email=match.email,
            )

        response = await self._client.create_constituent(self._constituent_payload(event))
        return CrmOutcome.from_response(
            response,
            match_method=MatchMethodEnum.NONE,
            matched_email=event.customer_email,
        )

    async def _record_payment(self, constituent_id: str, event: OrderEvent) -> CrmOutcome:
        response = await self._client.add_gift(constituent_id, self._gift_payload(event))
        return CrmOutcome.from_response(response)

    @staticmethod
    def _constituent_payload(event: OrderEvent) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "first_name": event.first_name.strip(),
            "last_name": event.last_name.strip(),
            "is_org": False,
        }
        if event.customer_email:
            payload["email_addresses"] = [
                {"address": event.customer_email.strip().lower(), "email_address_type_id": 1, "is_preferred": True}
            ]
        return payload

    def _gift_payload(self, event: OrderEvent) -> dict[str, Any]:
        received = (event.occurred_at or datetime.now(timezone.utc)).date()
        fund_name = self._routing.fund_for(item.category for item in event.line_items)
        payload: dict[str, Any] = {
            "external_id": event.order_id,
            "received_amount": str(event.total),
            "received_date": _iso_date(received),
            "payment_type_name": self._routing.payment_type_for(event.payment_method),
            "fund_name": fund_name,
            "note": _gift_note(event),
        }
        if event.payment_reference:
            payload["check_number"] = event.payment_reference
        if self._gift_type_id is not None:
            payload["gift_type_id"] = self._gift_type_id
        fund_id = self._routing.fund_id_for(fund_name)
        if fund_id is not None:
            payload["fund_id"] = fund_id
        return payload


def _stored_constituent(record: OrderSyncRecord | None) -> CrmOutcome | None:
    if record is None or not record.constituent_id:
        return None
    return CrmOutcome.success(
        record.constituent_id,
        payload=record.constituent_response_raw,
        match_method=record.match_method,
        matched_email=record.matched_email,
    )


def _iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _gift_note(event: OrderEvent) -> str:
    items = ", ".join(f"{item.name} x{item.quantity}" for item in event.line_items)
    note = f"Online order #{event.order_id}"
    return f"{note}: {items}" if items else note


__all__ = [
    "OrderEvent",
    "OrderEventKind",
    "OrderLineItem",
    "OrderSyncProcessor",
]
