#!/usr/bin/env python3
"""
Shared pytest configuration and fixtures for the translator bot tests.

Environment variables are set at import time so that `settings` and `app`
pick them up no matter which test module imports them first. Every external
service is replaced by a mock.
"""

import os
import sys
import tempfile
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

TEST_ENV = {
    'TWILIO_ACCOUNT_SID': 'ACtest_account_sid',
    'TWILIO_AUTH_TOKEN': 'test_auth_token',
    'TWILIO_PHONE_NUMBER': '+14155238886',
    'OPENAI_API_KEY': 'test_openai_key',
    'GOOGLE_API_KEY': 'test_google_api_key',
    'GOOGLE_TTS_KEY': 'test_google_tts_key',
    'STRIPE_SECRET_KEY': 'sk_test_123',
    'STRIPE_WEBHOOK_SECRET': 'whsec_test_123',
    'PRICE_MONTHLY': 'price_monthly',
    'PRICE_ANNUAL': 'price_annual',
    'PRICE_LIFE': 'price_life',
    'AWS_ACCESS_KEY_ID': 'test_key',
    'AWS_SECRET_ACCESS_KEY': 'test_secret',
    'S3_PUBLIC_BASE_URL': 'https://cdn.example.com',
    'FREE_QUOTA': '5',
}
for _key, _value in TEST_ENV.items():
    os.environ.setdefault(_key, _value)
os.environ.setdefault('DB_FILE', os.path.join(tempfile.gettempdir(), 'tucan_test_app.db'))

from user_store import UserStore  # noqa: E402


class FakeMessenger:
    """Records outbound messages instead of calling Twilio."""

    def __init__(self):
        self.sent = []

    def send(self, to, body="", media_url=None):
        self.sent.append({'to': to, 'body': body, 'media_url': media_url})

    def bodies(self, to=None):
        return [m['body'] for m in self.sent if m['media_url'] is None and (to is None or m['to'] == to)]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def store(tmp_path):
    """A fresh SQLite user store per test."""
    user_store = UserStore(str(tmp_path / 'test_tucan.db'))
    user_store.initialize()
    return user_store


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def ready_user(store):
    """A user who finished the wizard: English speaker receiving Spanish."""
    store.create_user('whatsapp:+15550001')
    store.update_user(
        'whatsapp:+15550001',
        language_step='READY', ui_lang='en', source_lang='en',
        target_lang='es', voice_gender='FEMALE',
    )
    return store.get_user('whatsapp:+15550001')


@pytest.fixture
def mock_transcriber():
    from speech import Transcript
    transcriber = MagicMock()
    transcriber.transcribe.return_value = Transcript(text='where is the station', language='en')
    return transcriber


@pytest.fixture
def mock_synthesizer():
    synthesizer = MagicMock()
    synthesizer.synthesize.return_value = b'ID3fake-mp3'
    return synthesizer


@pytest.fixture
def mock_object_store():
    object_store = MagicMock()
    object_store.upload_audio.return_value = 'https://cdn.example.com/tts-voices/tts_1.mp3'
    object_store.upload_document.return_value = 'https://cdn.example.com/tts-voices/doc_1.txt'
    return object_store


@pytest.fixture
def sample_webhook_data():
    """Sample webhook data that Twilio would send."""
    return {
        'From': 'whatsapp:+1234567890',
        'To': 'whatsapp:+14155238886',
        'Body': 'Hello, this is a test message',
        'NumMedia': '0',
        'MessageSid': 'SM1234567890abcdef',
        'AccountSid': 'AC1234567890abcdef'
    }


@pytest.fixture
def sample_voice_webhook_data():
    """Sample voice message webhook data."""
    return {
        'From': 'whatsapp:+1234567890',
        'To': 'whatsapp:+14155238886',
        'NumMedia': '1',
        'MediaUrl0': 'https://api.twilio.com/2010-04-01/Accounts/AC123/Messages/MM123/Media/ME123',
        'MediaContentType0': 'audio/ogg',
        'MessageSid': 'SM1234567890abcdef'
    }
