"""Stripe subscription billing: checkout sessions and the webhook feed that sets tier and expiry.

Webhook application is state-setting (tier/expiry are overwritten from the event payload),
so Stripe's at-least-once delivery and retries converge on the same account state.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import stripe

from cashflowops.core.errors import ServiceUnavailableError, ValidationError
from cashflowops.schemas.account import Account, Tier
from cashflowops.stores.base import AccountStore

if TYPE_CHECKING:
    from cashflowops.core.config import Settings

logger = logging.getLogger(__name__)

# Subscription statuses that still grant the paid tier until the period end.
ENTITLED_STATUSES = frozenset({"active", "trialing", "past_due"})

SUBSCRIPTION_EVENTS = frozenset(
    {
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    }
)


def _secret(value: Any) -> str | None:
    if value is None:
        return None
    raw = value.get_secret_value() if hasattr(value, "get_secret_value") else str(value)
    return raw.strip() or None


def _price_for_tier(settings: Settings, tier: Tier) -> str | None:
    if tier == "WEEKLY":
        return settings.STRIPE_PRICE_WEEKLY
    if tier == "MONTHLY":
        return settings.STRIPE_PRICE_MONTHLY
    return None


def _tier_for_price(settings: Settings, price_id: str | None) -> Tier | None:
    if not price_id:
        return None
    if price_id == settings.STRIPE_PRICE_WEEKLY:
        return "WEEKLY"
    if price_id == settings.STRIPE_PRICE_MONTHLY:
        return "MONTHLY"
    return None


def _ts_to_datetime(ts: int | float | None) -> datetime | None:
    if ts is None:
        return None
    try:
        return datetime.fromtimestamp(float(ts), tz=UTC)
    except (TypeError, ValueError, OverflowError):
        return None


def create_checkout_session(settings: Settings, account: Account, tier: Tier) -> str:
    """Create a Stripe Checkout Session for a subscription and return its URL."""
    api_key = _secret(settings.STRIPE_SECRET_KEY)
    price_id = _price_for_tier(settings, tier)
    if not api_key or not price_id:
        raise ServiceUnavailableError("Billing is not configured.")

    params: dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": settings.BILLING_SUCCESS_URL,
        "cancel_url": settings.BILLING_CANCEL_URL,
        "allow_promotion_codes": True,
        # Lets webhooks map back to the account even before the customer id is linked.
        "client_reference_id": account.id,
        "metadata": {"account_id": account.id},
        "subscription_data": {"metadata": {"account_id": account.id}},
    }
    if account.billing_customer_id:
        params["customer"] = account.billing_customer_id
    else:
        params["customer_email"] = account.email

    try:
        session = stripe.checkout.Session.create(api_key=api_key, **params)
    except stripe.StripeError as e:
        logger.error("Stripe checkout session failed for account=%s: %s", account.id, e)
        raise ServiceUnavailableError("Payment provider error. Try again later.") from e

    url = getattr(session, "url", None)
    if not url:
        raise ServiceUnavailableError("Payment provider returned no checkout URL.")
    logger.info("Checkout session created for account=%s tier=%s", account.id, tier)
    return str(url)


def verify_webhook(settings: Settings, payload: bytes, signature: str | None) -> dict[str, Any]:
    """Check the Stripe-Signature header and return the parsed event."""
    secret = _secret(settings.STRIPE_WEBHOOK_SECRET)
    if not secret:
        raise ServiceUnavailableError("Billing webhook is not configured.")
    if not signature:
        raise ValidationError("Missing Stripe-Signature header.")
    try:
        text = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            text, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        event = json.loads(text)
    except stripe.SignatureVerificationError as e:
        logger.warning("Rejected webhook with bad signature: %s", e)
        raise ValidationError("Invalid webhook signature.") from e
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Webhook payload is not valid JSON.") from e
    if not isinstance(event, dict):
        raise ValidationError("Webhook payload must be a JSON object.")
    return event


def _resolve_account(store: AccountStore, obj: dict[str, Any]) -> Account | None:
    metadata = obj.get("metadata") or {}
    account_id = obj.get("client_reference_id") or metadata.get("account_id")
    if account_id:
        account = store.find_by_id(str(account_id))
        if account is not None:
            return account
    customer_id = obj.get("customer")
    if customer_id:
        return store.find_by_billing_customer(str(customer_id))
    return None


def _first_item(subscription: dict[str, Any]) -> dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    if items and isinstance(items, list) and isinstance(items[0], dict):
        return items[0]
    return {}


def _period_end(subscription: dict[str, Any]) -> datetime | None:
    # Newer Stripe API versions carry the period on the subscription item.
    return _ts_to_datetime(
        subscription.get("current_period_end") or _first_item(subscription).get("current_period_end")
    )


def _apply_checkout_completed(store: AccountStore, session: dict[str, Any]) -> bool:
    account = _resolve_account(store, session)
    if account is None:
        logger.warning("checkout.session.completed: could not map to an account")
        return False
    customer_id = session.get("customer")
    if customer_id and account.billing_customer_id != customer_id:
        store.update_fields(account.id, billing_customer_id=str(customer_id), updated_at=datetime.now(UTC))
    return True


def _apply_subscription(
    store: AccountStore,
    settings: Settings,
    event_type: str,
    subscription: dict[str, Any],
    now: datetime,
) -> bool:
    account = _resolve_account(store, subscription)
    if account is None:
        logger.warning("%s: could not map subscription %s to an account", event_type, subscription.get("id"))
        return False

    status = str(subscription.get("status") or "").lower()
    fields: dict[str, Any] = {"updated_at": now}
    customer_id = subscription.get("customer")
    if customer_id and not account.billing_customer_id:
        fields["billing_customer_id"] = str(customer_id)

    if event_type == "customer.subscription.deleted" or status not in ENTITLED_STATUSES:
        fields["tier"] = "FREE"
        if event_type == "customer.subscription.deleted":
            fields["subscription_expiry"] = _ts_to_datetime(subscription.get("ended_at")) or now
    else:
        price_id = (_first_item(subscription).get("price") or {}).get("id")
        tier = _tier_for_price(settings, price_id)
        if tier is None:
            logger.warning("%s: unknown price %s for account %s", event_type, price_id, account.id)
            return False
        fields["tier"] = tier
        fields["subscription_expiry"] = _period_end(subscription)

    account = store.update_fields(account.id, **fields)
    logger.info(
        "Billing applied: event=%s account=%s status=%s tier=%s expiry=%s",
        event_type,
        account.id,
        status,
        account.tier,
        account.subscription_expiry.isoformat() if account.subscription_expiry else None,
    )
    return True


def apply_billing_event(
    store: AccountStore,
    settings: Settings,
    event: dict[str, Any],
    now: datetime | None = None,
) -> bool:
    """
    Apply a verified Stripe event to the matching account.

    Returns True when an account changed; False for ignored event types or unmapped accounts.
    """
    now = now or datetime.now(UTC)
    event_type = str(event.get("type") or "")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        return _apply_checkout_completed(store, obj)
    if event_type in SUBSCRIPTION_EVENTS:
        return _apply_subscription(store, settings, event_type, obj, now)
    logger.debug("Ignoring billing event type %s", event_type)
    return False
