#!/usr/bin/env python3
"""
Speech-to-text for inbound voice notes.

Transcription goes to the hosted OpenAI audio API; when the primary model
fails the older model is tried once before giving up.
"""

from dataclasses import dataclass
from typing import List, Optional

from openai import OpenAI

import settings
from logging_config import get_logger
from utils import AllStrategiesFailed, first_success, shorten

logger = get_logger(__name__)


class TranscriptionError(Exception):
    """Raised when every transcription model failed."""


# verbose_json reports full language names
_LANGUAGE_NAMES = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "portuguese": "pt",
    "german": "de",
}


def language_code(reported: Optional[str]) -> str:
    """2-letter code for what the model reported, or "" when it is not recognisable."""
    value = (reported or "").strip().lower()
    if len(value) == 2 and value.isalpha():
        return value
    if len(value) > 2 and value[2] in "-_":
        return value[:2]
    return _LANGUAGE_NAMES.get(value, "")


@dataclass
class Transcript:
    text: str
    language: str = ""


class Transcriber:
    def __init__(self, client: Optional[OpenAI] = None, models: Optional[List[str]] = None):
        self.client = client
        self.models = list(models or settings.TRANSCRIBE_MODELS)

    def _transcribe_with(self, model: str, wav_path: str) -> Transcript:
        with open(wav_path, "rb") as audio_file:
            result = self.client.audio.transcriptions.create(
                model=model,
                file=audio_file,
                response_format="verbose_json",
            )
        text = (getattr(result, "text", "") or "").strip()
        return Transcript(text=text, language=language_code(getattr(result, "language", "")))

    def transcribe(self, wav_path: str) -> Transcript:
        """
        Transcribe a WAV file.

        Args:
            wav_path: Path to mono 16 kHz WAV audio

        Returns:
            Transcript with text and the 2-letter language the model reported
            (empty string when it reported none)
        """
        if self.client is None:
            raise TranscriptionError("OpenAI client not configured")

        strategies = [
            (model, lambda model=model: self._transcribe_with(model, wav_path))
            for model in self.models
        ]
        try:
            transcript = first_success("transcription", strategies, accept=lambda t: t is not None)
        except AllStrategiesFailed as e:
            raise TranscriptionError(str(e)) from e

        logger.info(f"Transcription successful ({transcript.language or '??'}): '{shorten(transcript.text)}'")
        return transcript
