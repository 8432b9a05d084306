#!/usr/bin/env python3
"""
Stripe billing for the paywall.

- Checkout links for the three tiers (monthly, annual, lifetime)
- Webhook handling that flips a user's plan
"""

from typing import Any, Dict, Optional

import stripe

import settings
from logging_config import get_logger
from user_store import UserStore

logger = get_logger(__name__)

# menu digit -> tier
TIER_BY_CHOICE = {"1": "monthly", "2": "annual", "3": "life"}
PLAN_BY_TIER = {"monthly": "MONTHLY", "annual": "ANNUAL"}
ONE_TIME_TIERS = ("life",)


class InvalidWebhook(Exception):
    """The billing webhook payload or signature could not be verified."""


def plan_for_tier(tier: Optional[str]) -> str:
    return PLAN_BY_TIER.get(tier or "", "LIFETIME")


def field(obj: Any, key: str) -> Any:
    """
    Read one field of a Stripe object, or None when it is absent.

    Works on plain dicts and on StripeObject, which has no `.get`.
    """
    if obj is None or key not in obj:
        return None
    return obj[key]


class BillingGateway:
    def __init__(self, store: UserStore, prices: Optional[Dict[str, str]] = None,
                 webhook_secret: Optional[str] = None):
        self.store = store
        self.prices = prices or {
            "monthly": settings.PRICE_MONTHLY,
            "annual": settings.PRICE_ANNUAL,
            "life": settings.PRICE_LIFE,
        }
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    def ensure_customer(self, user: Dict[str, Any]) -> str:
        """Return the user's Stripe customer id, creating and saving one if absent."""
        if user.get("stripe_cust_id"):
            return user["stripe_cust_id"]
        customer = stripe.Customer.create(
            description=f"TuCan {user['phone_number']}",
            metadata={"uid": user["id"]},
        )
        self.store.update_where("id", user["id"], stripe_cust_id=customer["id"])
        user["stripe_cust_id"] = customer["id"]
        logger.info(f"Created Stripe customer {customer['id']} for {user['phone_number']}")
        return customer["id"]

    def checkout_url(self, user: Dict[str, Any], tier: str) -> str:
        """
        Create a hosted checkout session for `tier` and return its URL.

        Lifetime is a one-time payment; the other tiers are subscriptions.
        """
        if tier not in self.prices:
            raise ValueError(f"Unknown tier {tier!r}")
        session = stripe.checkout.Session.create(
            mode="payment" if tier in ONE_TIME_TIERS else "subscription",
            customer=self.ensure_customer(user),
            line_items=[{"price": self.prices[tier], "quantity": 1}],
            success_url=settings.CHECKOUT_SUCCESS_URL,
            cancel_url=settings.CHECKOUT_CANCEL_URL,
            metadata={"tier": tier, "uid": user["id"]},
        )
        logger.info(f"Checkout session {session['id']} ({tier}) for {user['phone_number']}")
        return session["url"]

    def construct_event(self, payload: bytes, signature: Optional[str]):
        if not signature or not self.webhook_secret:
            raise InvalidWebhook("Missing Stripe signature or webhook secret")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise InvalidWebhook(str(e)) from e

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, bool]:
        """
        Verify and apply a Stripe webhook.

        Raises:
            InvalidWebhook: bad signature or payload; nothing is changed
        """
        event = self.construct_event(payload, signature)
        event_type = event["type"]
        data = event["data"]["object"]
        logger.info(f"Stripe event {event_type}")

        if event_type == "checkout.session.completed":
            self._activate_plan(data)
        elif event_type == "customer.subscription.deleted":
            changed = self.store.update_where("stripe_sub_id", field(data, "id"), plan="FREE")
            logger.info(f"Subscription {field(data, 'id')} deleted, downgraded {changed} user(s)")
        return {"received": True}

    def _activate_plan(self, session: Any) -> None:
        metadata = field(session, "metadata")
        plan = plan_for_tier(field(metadata, "tier"))
        customer_id = field(session, "customer")
        subscription_id = field(session, "subscription")

        changed = self.store.update_where(
            "stripe_cust_id", customer_id,
            plan=plan, free_used=0, stripe_sub_id=subscription_id,
        )
        if changed == 0:
            # customer id not saved yet; fall back to the id we put in metadata
            changed = self.store.update_where(
                "id", field(metadata, "uid"),
                plan=plan, free_used=0, stripe_cust_id=customer_id, stripe_sub_id=subscription_id,
            )
        if changed == 0:
            logger.warning(f"Checkout for customer {customer_id} matched no user")
        else:
            logger.info(f"Activated {plan} for customer {customer_id}")
