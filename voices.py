#!/usr/bin/env python3
"""
Voice selection and speech synthesis through the Google Text-to-Speech REST API.

VoiceCatalog owns the voice list, grouped by 2-letter language prefix. It is
filled on first use and kept for the lifetime of the object; the app creates
one at startup and hands it to the Synthesizer.
"""

import base64
import threading
from typing import Callable, Dict, List, Optional

import requests

import settings
from logging_config import get_logger
from utils import AllStrategiesFailed, first_success

logger = get_logger(__name__)

VOICES_URL = "https://texttospeech.googleapis.com/v1/voices"
SYNTHESIZE_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"

# best first
VOICE_TIERS = (("Neural2",), ("Wavenet", "WaveNet"), ("Standard",))

Voice = Dict[str, object]


class SynthesisError(Exception):
    """Raised when every synthesis fallback failed."""


def fetch_voice_list(api_key: Optional[str] = None) -> List[Voice]:
    response = requests.get(
        VOICES_URL,
        params={"key": api_key or settings.GOOGLE_TTS_KEY},
        timeout=settings.HTTP_TIMEOUT,
    )
    response.raise_for_status()
    return response.json().get("voices", [])


def group_by_prefix(voices: List[Voice]) -> Dict[str, List[Voice]]:
    grouped: Dict[str, List[Voice]] = {}
    for voice in voices:
        for full_code in voice.get("languageCodes", []):
            grouped.setdefault(full_code.split("-", 1)[0].lower(), []).append(voice)
    return grouped


class VoiceCatalog:
    """Lazily loaded, never invalidated map of language prefix -> voices."""

    def __init__(self, fetcher: Callable[[], List[Voice]] = fetch_voice_list):
        self._fetcher = fetcher
        self._voices: Optional[Dict[str, List[Voice]]] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._voices is not None

    def load(self) -> Dict[str, List[Voice]]:
        if self._voices is None:
            with self._lock:
                if self._voices is None:
                    self._voices = group_by_prefix(self._fetcher())
                    logger.info(f"Voice cache ready ({len(self._voices)} language prefixes)")
        return self._voices

    def voices_for(self, lang: str) -> List[Voice]:
        return list(self.load().get(lang.lower(), []))

    def pick_voice(self, lang: str, gender: Optional[str]) -> str:
        """
        Best voice name for a language prefix and SSML gender.

        Falls back to any gender when none matches, prefers en-US names for
        English, then walks the quality tiers.
        """
        candidates = self.voices_for(lang)
        matching = [v for v in candidates if v.get("ssmlGender") == gender]
        if matching:
            candidates = matching
        if lang.lower() == "en":
            us_only = [v for v in candidates if str(v.get("name", "")).startswith("en-US")]
            if us_only:
                candidates = us_only

        for markers in VOICE_TIERS:
            for voice in candidates:
                name = str(voice.get("name", ""))
                if any(marker in name for marker in markers):
                    return name
        return settings.DEFAULT_VOICE


def language_code_for(voice_name: str) -> str:
    """'es-ES-Neural2-A' -> 'es-ES'; a bare 'es' stays 'es'."""
    return "-".join(voice_name.split("-")[:2])


class Synthesizer:
    def __init__(self, catalog: VoiceCatalog, api_key: Optional[str] = None):
        self.catalog = catalog
        self.api_key = api_key

    def synthesize_with(self, text: str, voice_name: str) -> Optional[bytes]:
        """MP3 bytes for one voice, or None when the API returned no audio."""
        response = requests.post(
            SYNTHESIZE_URL,
            params={"key": self.api_key or settings.GOOGLE_TTS_KEY},
            json={
                "input": {"text": text},
                "voice": {"languageCode": language_code_for(voice_name), "name": voice_name},
                "audioConfig": {"audioEncoding": "MP3", "speakingRate": settings.SPEAKING_RATE},
            },
            timeout=settings.HTTP_TIMEOUT,
        )
        content = response.json().get("audioContent")
        return base64.b64decode(content) if content else None

    def synthesize(self, text: str, lang: str, gender: Optional[str]) -> bytes:
        """
        Synthesize MP3 audio, trying the picked voice, the bare language
        code and finally the default voice.
        """
        strategies = [
            ("picked voice", lambda: self.synthesize_with(text, self.catalog.pick_voice(lang, gender))),
            ("language code", lambda: self.synthesize_with(text, lang)),
            ("default voice", lambda: self.synthesize_with(text, settings.DEFAULT_VOICE)),
        ]
        try:
            audio = first_success("tts", strategies)
        except AllStrategiesFailed as e:
            raise SynthesisError(str(e)) from e
        logger.info(f"Synthesized {len(audio)} bytes of {lang} audio")
        return audio
