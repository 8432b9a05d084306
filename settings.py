# settings.py  ─ single source of config & constants
import os
from dotenv import load_dotenv, find_dotenv

# Load local .env (if present)
load_dotenv(find_dotenv())

# ───────────── Sensitive values (env-vars) ─────────────
TWILIO_ACCOUNT_SID    = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN     = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER   = os.getenv("TWILIO_PHONE_NUMBER", "")

OPENAI_API_KEY        = os.getenv("OPENAI_API_KEY")
GOOGLE_API_KEY        = os.getenv("GOOGLE_API_KEY")
GOOGLE_TTS_KEY        = os.getenv("GOOGLE_TTS_KEY", GOOGLE_API_KEY)

STRIPE_SECRET_KEY     = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
PRICE_MONTHLY         = os.getenv("PRICE_MONTHLY")
PRICE_ANNUAL          = os.getenv("PRICE_ANNUAL")
PRICE_LIFE            = os.getenv("PRICE_LIFE")

AWS_ACCESS_KEY_ID     = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")

# ───────────── Non-sensitive defaults ─────────────
WHATSAPP_FROM = (
    TWILIO_PHONE_NUMBER
    if TWILIO_PHONE_NUMBER.startswith("whatsapp:")
    else f"whatsapp:{TWILIO_PHONE_NUMBER}"
)

DB_FILE               = os.getenv("DB_FILE", "tucan.db")
PORT                  = int(os.getenv("PORT", "8080"))
VALIDATE_TWILIO_SIGNATURE = os.getenv("VALIDATE_TWILIO_SIGNATURE", "true").lower() != "false"

FREE_QUOTA            = int(os.getenv("FREE_QUOTA", "5"))
HTTP_TIMEOUT          = float(os.getenv("HTTP_TIMEOUT", "30"))

TRANSCRIBE_MODELS     = ["whisper-large-v3", "whisper-1"]
TRANSLATE_MODEL       = os.getenv("TRANSLATE_MODEL", "gemini-1.5-flash")
DEFAULT_VOICE         = "en-US-Standard-A"
SPEAKING_RATE         = 0.9

S3_BUCKET             = os.getenv("S3_BUCKET", "tts-voices")
S3_REGION             = os.getenv("S3_REGION", "us-east-1")
S3_ENDPOINT_URL       = os.getenv("S3_ENDPOINT_URL")
S3_PUBLIC_BASE_URL    = os.getenv("S3_PUBLIC_BASE_URL", f"https://s3.{S3_REGION}.amazonaws.com")
# unset: objects inherit the bucket policy (ACLs are disabled on new AWS buckets)
S3_OBJECT_ACL         = os.getenv("S3_OBJECT_ACL") or None

CHECKOUT_SUCCESS_URL  = os.getenv("CHECKOUT_SUCCESS_URL", "https://tucanchat.io/success")
CHECKOUT_CANCEL_URL   = os.getenv("CHECKOUT_CANCEL_URL", "https://tucanchat.io/cancel")

