"""Stripe billing endpoints: start a subscription checkout and receive the webhook feed."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from cashflowops.api.deps import get_account_store
from cashflowops.api.v1.auth import get_current_account
from cashflowops.core.config import get_settings
from cashflowops.schemas.account import Account
from cashflowops.schemas.billing import CheckoutRequest, CheckoutResponse, WebhookResponse
from cashflowops.services.billing import apply_billing_event, create_checkout_session, verify_webhook
from cashflowops.stores.base import AccountStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
def post_checkout(
    body: CheckoutRequest,
    current: Annotated[Account, Depends(get_current_account)],
) -> CheckoutResponse:
    """Create a Stripe Checkout session for the WEEKLY or MONTHLY plan. 503 when billing is not configured."""
    url = create_checkout_session(get_settings(), current, body.tier)
    return CheckoutResponse(url=url)


@router.post("/webhook", response_model=WebhookResponse)
async def post_webhook(
    request: Request,
    store: Annotated[AccountStore, Depends(get_account_store)],
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> WebhookResponse:
    """
    Stripe webhook: verifies the signature, then applies checkout and subscription
    events to the matching account's tier and subscription expiry.
    """
    settings = get_settings()
    payload = await request.body()
    event = verify_webhook(settings, payload, stripe_signature)
    applied = await run_in_threadpool(apply_billing_event, store, settings, event)
    event_type = str(event.get("type") or "")
    logger.info("Webhook processed: id=%s type=%s applied=%s", event.get("id"), event_type, applied)
    return WebhookResponse(event_type=event_type, applied=applied)
