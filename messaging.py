"""Outbound WhatsApp messages through the Twilio REST API."""

from typing import Optional

from twilio.rest import Client

import settings
from logging_config import get_logger
from utils import shorten

logger = get_logger(__name__)


class Messenger:
    def __init__(self, client: Optional[Client], from_number: str = settings.WHATSAPP_FROM):
        self.client = client
        self.from_number = from_number

    def send(self, to: str, body: str = "", media_url: Optional[str] = None) -> None:
        """
        Send one message: a media attachment when `media_url` is given,
        otherwise the text body. Never both in one call.
        """
        if self.client is None:
            raise RuntimeError("Twilio client not initialized")
        if media_url:
            self.client.messages.create(from_=self.from_number, to=to, media_url=[media_url])
            logger.info(f"Sent media to {to}: {media_url}")
        else:
            self.client.messages.create(from_=self.from_number, to=to, body=body)
            logger.info(f"Sent text to {to}: '{shorten(body)}'")
