#!/usr/bin/env python3
"""
Language services for the translator bot.

This module handles:
- Language identification through the Google Translate v2 detect endpoint
- Translation through Google Gemini, constrained to return only the translation
"""

import requests
import google.generativeai as genai
from typing import Optional

import settings
from logging_config import get_logger
from utils import shorten

# Get logger for this module
logger = get_logger(__name__)

DETECT_URL = "https://translation.googleapis.com/language/translate/v2/detect"
TRANSLATE_MAX_TOKENS = 400

# Configure Google Generative AI
try:
    if not settings.GOOGLE_API_KEY:
        raise ValueError("GOOGLE_API_KEY not found in environment variables.")
    genai.configure(api_key=settings.GOOGLE_API_KEY)
    logger.info("Google Generative AI configured successfully.")
except Exception:
    logger.exception("Failed to configure Google Generative AI")


class TranslationError(Exception):
    """Raised when the translation model returns nothing usable."""


def detect_language(text: str, api_key: Optional[str] = None) -> str:
    """
    Identify the language of `text`.

    Args:
        text (str): Text to classify

    Returns:
        str: 2-letter language code, e.g. 'es'
    """
    response = requests.post(
        DETECT_URL,
        params={"key": api_key or settings.GOOGLE_TTS_KEY},
        json={"q": text},
        timeout=settings.HTTP_TIMEOUT,
    )
    response.raise_for_status()
    detections = response.json()["data"]["detections"]
    language = detections[0][0]["language"][:2].lower()
    logger.info(f"Detected language '{language}' for '{shorten(text, 40)}'")
    return language


def translation_instruction(target: str) -> str:
    return f"Translate to {target}. Return ONLY the translation."


def translate(text: str, target: str, model_name: Optional[str] = None,
              max_tokens: int = TRANSLATE_MAX_TOKENS) -> str:
    """
    Translate `text` into the `target` language.

    Args:
        text (str): Original text
        target (str): 2-letter destination language code

    Returns:
        str: The translated text, stripped
    """
    model = genai.GenerativeModel(
        model_name or settings.TRANSLATE_MODEL,
        system_instruction=translation_instruction(target),
        generation_config={"max_output_tokens": max_tokens},
    )
    logger.info(f"Translating to '{target}': '{shorten(text)}'")
    response = model.generate_content(text)

    translated = (response.text or "").strip()
    if translated.startswith("```") and translated.endswith("```"):
        translated = translated.strip("`").strip()
    if not translated:
        raise TranslationError(f"Empty translation for target '{target}'")

    logger.info(f"Translation result: '{shorten(translated)}'")
    return translated
