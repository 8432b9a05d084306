#!/usr/bin/env python3
"""
Message dispatcher: decides what one inbound WhatsApp message means.

Routing precedence, first match wins:
  1. unknown sender        -> create the user (welcome menu unless the
                              message already picks a language)
  2. 1-3 behind paywall    -> checkout link for that tier
  3. reset command         -> back to the welcome menu
  4. quota used up         -> paywall message
  5. wizard not finished   -> onboarding wizard
  6. otherwise             -> translation pipeline
"""

import threading
import weakref
from typing import Any, Dict, Optional

import languages
import onboarding
import settings
from billing import TIER_BY_CHOICE, BillingGateway
from languages import tr
from logging_config import get_logger
from messaging import Messenger
from onboarding import LanguageStep, WizardOutcome
from pipeline import InboundMessage, TranslationPipeline, is_free_plan
from user_store import UserStore

logger = get_logger(__name__)

PAYMENT_LINK = "Tap to pay → {url}"
PAYMENT_LINK_ERROR = "⚠️ Payment link error. Try again later."


class Dispatcher:
    def __init__(
        self,
        store: UserStore,
        messenger: Messenger,
        pipeline: TranslationPipeline,
        billing: BillingGateway,
        quota: int = settings.FREE_QUOTA,
    ):
        self.store = store
        self.messenger = messenger
        self.pipeline = pipeline
        self.billing = billing
        self.quota = quota
        # entries vanish once no thread holds or waits on the lock
        self._sender_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, sender: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._sender_locks.get(sender)
            if lock is None:
                lock = threading.Lock()
                self._sender_locks[sender] = lock
            return lock

    def quota_exhausted(self, user: Dict[str, Any]) -> bool:
        return is_free_plan(user) and (user.get("free_used") or 0) >= self.quota

    def handle_incoming(self, message: InboundMessage) -> None:
        """
        Process one message end to end. Never raises: failures are logged
        and the sender gets a short apology.
        """
        if not message.sender:
            return
        with self._lock_for(message.sender):
            logger.info(f"BACKGROUND: processing message from {message.sender}")
            user = None
            try:
                user = self.store.get_user(message.sender)
                self._route(user, message)
            except Exception:
                logger.exception(f"handle_incoming failed for {message.sender}")
                self._apologize(message.sender, user)

    def _route(self, user: Optional[Dict[str, Any]], message: InboundMessage) -> None:
        sender = message.sender
        text = (message.body or "").strip()

        if user is None:
            user = self.store.create_user(sender)
            if languages.pick_language(text) is None:
                self.messenger.send(sender, languages.welcome_message())
                return

        if text in TIER_BY_CHOICE and self.quota_exhausted(user):
            self._send_checkout(user, TIER_BY_CHOICE[text])
            return

        if languages.is_reset_command(text):
            self._apply(user, onboarding.reset_outcome())
            logger.info(f"Reset wizard for {sender}")
            return

        if self.quota_exhausted(user):
            self.messenger.send(sender, tr(user.get("ui_lang"), "paywall", quota=self.quota))
            return

        step = LanguageStep.of(user.get("language_step"))
        if step is not LanguageStep.READY or not onboarding.is_ready(user):
            self._apply(user, onboarding.advance(user, text))
            return

        self.pipeline.run(user, message)

    def _apply(self, user: Dict[str, Any], outcome: WizardOutcome) -> None:
        if outcome.updates:
            self.store.update_user(user["phone_number"], **outcome.updates)
            user.update(outcome.updates)
        for reply in outcome.replies:
            self.messenger.send(user["phone_number"], reply)

    def _send_checkout(self, user: Dict[str, Any], tier: str) -> None:
        try:
            url = self.billing.checkout_url(user, tier)
        except Exception:
            logger.exception(f"Stripe checkout error for {user['phone_number']}")
            self.messenger.send(user["phone_number"], PAYMENT_LINK_ERROR)
            return
        self.messenger.send(user["phone_number"], PAYMENT_LINK.format(url=url))

    def _apologize(self, sender: str, user: Optional[Dict[str, Any]]) -> None:
        ui = (user or {}).get("ui_lang")
        try:
            self.messenger.send(sender, tr(ui, "processError"))
        except Exception:
            logger.exception(f"Could not send error message to {sender}")
