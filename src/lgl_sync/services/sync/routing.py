"""Payment type and fund selection for gifts posted to LGL."""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field, field_validator

from lgl_sync.core.settings import Settings

DEFAULT_PAYMENT_TYPE = "Credit Card"
DEFAULT_FUND = "General Fund"

DEFAULT_PAYMENT_TYPES: dict[str, str] = {
    "stripe": "Credit Card",
    "square": "Credit Card",
    "paypal": "PayPal",
    "bacs": "Bank Transfer",
    "cheque": "Check",
    "cod": "Cash",
}

# Store product category -> LGL fund name, checked in line item order.
DEFAULT_CATEGORY_FUNDS: dict[str, str] = {
    "memberships": "Membership",
    "language-class": "Education Fund",
    "events": "Events Fund",
}


def _lowercased(value: object) -> object:
    if isinstance(value, dict):
        return {str(key).strip().lower(): item for key, item in value.items()}
    return value


class GiftRouting(BaseModel):
    """Maps store gateways to LGL payment types and line item categories to funds.

    Fund ids are optional; when a fund name has one it is sent alongside the name.
    """

    payment_types: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PAYMENT_TYPES))
    default_payment_type: str = DEFAULT_PAYMENT_TYPE
    category_funds: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CATEGORY_FUNDS))
    default_fund: str = DEFAULT_FUND
    fund_ids: dict[str, int] = Field(default_factory=dict)

    @field_validator("payment_types", "category_funds", mode="before")
    @classmethod
    def _normalize_keys(cls, value: object) -> object:
        return _lowercased(value)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GiftRouting":
        return cls(
            payment_types={**DEFAULT_PAYMENT_TYPES, **_lowercased(settings.lgl_payment_types)},
            category_funds={**DEFAULT_CATEGORY_FUNDS, **_lowercased(settings.lgl_category_funds)},
            default_fund=settings.lgl_default_fund,
            fund_ids=settings.lgl_fund_ids,
        )

    def payment_type_for(self, gateway: str | None) -> str:
        if not gateway:
            return self.default_payment_type
        return self.payment_types.get(gateway.strip().lower(), self.default_payment_type)

    def fund_for(self, categories: Iterable[str | None]) -> str:
        for category in categories:
            if not category:
                continue
            fund = self.category_funds.get(category.strip().lower())
            if fund:
                return fund
        return self.default_fund

    def fund_id_for(self, fund_name: str) -> int | None:
        return self.fund_ids.get(fund_name)


__all__ = [
    "DEFAULT_CATEGORY_FUNDS",
    "DEFAULT_FUND",
    "DEFAULT_PAYMENT_TYPE",
    "DEFAULT_PAYMENT_TYPES",
    "GiftRouting",
]
