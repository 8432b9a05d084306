# --- TuCanChat: WhatsApp voice <-> text translator ---

import threading

from flask import Flask, Response, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from openai import OpenAI
from twilio.request_validator import RequestValidator
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse
import stripe

# --- Load settings (and .env) first ---
import settings

# --- Import centralized logging configuration ---
from logging_config import get_logger, install_thread_guard

# --- Import your own modules ---
from billing import BillingGateway, InvalidWebhook
from bot import Dispatcher
from messaging import Messenger
from pipeline import InboundMessage, TranslationPipeline
from speech import Transcriber
from storage import ObjectStore
from user_store import UserStore
from voices import Synthesizer, VoiceCatalog

# --- Create Flask app ---
app = Flask(__name__)

# --- Get logger for this module ---
logger = get_logger(__name__)
install_thread_guard()


def sender_key() -> str:
    """Rate-limit per WhatsApp sender; every webhook comes from Twilio's IPs."""
    return request.form.get("From") or get_remote_address()


# --- RATE LIMITING CONFIGURATION ---
limiter = Limiter(
    app=app,
    key_func=sender_key,
    default_limits=[],
    storage_uri="memory://"
)


# --- RATE LIMIT ERROR HANDLER ---
@app.errorhandler(429)  # Too Many Requests
def ratelimit_handler(e):
    """Handle rate limit exceeded errors with a proper TwiML response."""
    logger.warning(f"Rate limit exceeded for sender: {sender_key()}")
    response = MessagingResponse()
    response.message(
        "Rate limit exceeded. Please wait a moment before sending another message. "
        "You can send up to 20 messages per minute."
    )
    return Response(str(response), status=429, mimetype="text/xml")


# --- CLIENT SETUP ---
try:
    twilio_client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    # Initialize Twilio request validator for signature verification
    validator = RequestValidator(settings.TWILIO_AUTH_TOKEN)
    logger.info("Twilio client and request validator initialized successfully.")
except Exception:
    logger.exception("Could not initialize Twilio client")
    twilio_client = None
    validator = None

try:
    openai_client = OpenAI(api_key=settings.OPENAI_API_KEY)
    logger.info("OpenAI client initialized successfully.")
except Exception:
    logger.exception("Could not initialize OpenAI client")
    openai_client = None

stripe.api_key = settings.STRIPE_SECRET_KEY

store = UserStore(settings.DB_FILE)
store.initialize()

voice_catalog = VoiceCatalog()
messenger = Messenger(twilio_client)
billing = BillingGateway(store)
translation_pipeline = TranslationPipeline(
    store=store,
    messenger=messenger,
    transcriber=Transcriber(openai_client),
    synthesizer=Synthesizer(voice_catalog),
    object_store=ObjectStore(),
)
dispatcher = Dispatcher(store, messenger, translation_pipeline, billing)


def empty_twiml() -> Response:
    return Response(str(MessagingResponse()), mimetype="text/xml")


def start_background(message: InboundMessage) -> None:
    """Hand the message to a daemon thread; the webhook does not wait for it."""
    thread = threading.Thread(
        target=dispatcher.handle_incoming,
        args=(message,),
        name=f"msg-{message.sender}",
        daemon=True,
    )
    thread.start()


def signature_is_valid() -> bool:
    if validator is None:
        logger.error("Twilio validator not initialized. Rejecting request for security.")
        return False

    signature = request.headers.get("X-Twilio-Signature")
    if not signature:
        logger.warning("Missing X-Twilio-Signature header. Rejecting request.")
        return False
    try:
        # request.form is a MultiDict, which is what Twilio expects
        if not validator.validate(request.url, request.form, signature):
            logger.warning(f"Invalid Twilio signature from IP: {request.remote_addr}")
            return False
    except Exception:
        logger.exception("Error validating Twilio signature")
        return False
    return True


# ==============================================================================
# ============================ WHATSAPP WEBHOOK ================================
# ==============================================================================

@app.route("/whatsapp", methods=["POST"])
@app.route("/webhook", methods=["POST"])
@limiter.limit("20 per minute")
def whatsapp_webhook():
    """
    Acknowledge the Twilio webhook immediately; replies go out from a
    background thread through the REST API.
    """
    if settings.VALIDATE_TWILIO_SIGNATURE and not signature_is_valid():
        return "Forbidden", 403

    form_data = request.form
    sender_id = form_data.get("From")
    if not sender_id:
        return empty_twiml()

    try:
        num_media = int(form_data.get("NumMedia", "0") or 0)
    except ValueError:
        num_media = 0

    start_background(InboundMessage(
        sender=sender_id,
        body=form_data.get("Body", "").strip(),
        num_media=num_media,
        media_url=form_data.get("MediaUrl0"),
        media_type=form_data.get("MediaContentType0"),
    ))
    return empty_twiml()


# ==============================================================================
# ============================= STRIPE WEBHOOK =================================
# ==============================================================================

@app.route("/stripe-webhook", methods=["POST"])
@limiter.exempt
def stripe_webhook():
    try:
        result = billing.handle_webhook(request.get_data(), request.headers.get("Stripe-Signature"))
    except InvalidWebhook as e:
        logger.warning(f"Stripe signature error: {e}")
        return "Bad Request", 400
    return jsonify(result)


@app.route("/healthz", methods=["GET"])
@limiter.exempt
def healthz():
    return "OK"


def warm_voice_cache() -> None:
    try:
        voice_catalog.load()
    except Exception:
        logger.exception("Voice cache warm-up failed; it will load on first use")


if __name__ == "__main__":
    threading.Thread(target=warm_voice_cache, name="voice-cache", daemon=True).start()
    logger.info(f"Starting TuCanChat on port {settings.PORT}...")
    app.run(host="0.0.0.0", port=settings.PORT)
