"""Request/response schemas for Stripe billing endpoints."""

from typing import Literal

from pydantic import Field

from cashflowops.schemas.account import CamelModel


class CheckoutRequest(CamelModel):
    """Body for POST /billing/checkout."""

    tier: Literal["WEEKLY", "MONTHLY"] = Field(..., description="Paid tier to subscribe to")


class CheckoutResponse(CamelModel):
    url: str = Field(..., description="Stripe Checkout URL to redirect the browser to")


class WebhookResponse(CamelModel):
    received: bool = True
    event_type: str
    applied: bool = Field(..., description="False when the event type is ignored or maps to no account")
