#!/usr/bin/env python3
"""
Translation pipeline for users who finished the wizard.

Steps run strictly in order: get the original text (voice note, PDF or plain
text), detect its language, pick the direction, translate, charge the free
quota, log, reply. Voice notes get three replies: what was heard, the
translation and a spoken version; the spoken one is optional.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import documents
import media
import nlu
from logging_config import get_logger
from messaging import Messenger
from speech import Transcriber, Transcript
from storage import ObjectStore
from user_store import UserStore
from utils import shorten
from voices import Synthesizer

logger = get_logger(__name__)

EMPTY_MESSAGE = "⚠️ Send text or a voice note."
EMPTY_DOCUMENT = "⚠️ I couldn't read any text in that PDF."
DOCUMENT_MAX_TOKENS = 8192
DETECT_SAMPLE_CHARS = 1000


@dataclass
class InboundMessage:
    sender: str
    body: str = ""
    num_media: int = 0
    media_url: Optional[str] = None
    media_type: Optional[str] = None

    @property
    def has_media(self) -> bool:
        return self.num_media > 0 and bool(self.media_url)


@dataclass
class PipelineResult:
    original: str
    translated: str
    detected: str
    destination: str
    credits: int
    kind: str


def is_free_plan(user: Dict[str, Any]) -> bool:
    return not user.get("plan") or user["plan"] == "FREE"


def choose_destination(detected: str, source_lang: str, target_lang: str) -> str:
    """
    Translate towards target_lang, unless the text already is in target_lang:
    then it came from the other party and goes back to source_lang.
    """
    return source_lang if detected == target_lang else target_lang


class TranslationPipeline:
    def __init__(
        self,
        store: UserStore,
        messenger: Messenger,
        transcriber: Transcriber,
        synthesizer: Synthesizer,
        object_store: ObjectStore,
        detect: Callable[[str], str] = nlu.detect_language,
        translate: Callable[..., str] = nlu.translate,
        fetch: Callable[[str], Any] = media.fetch_media,
    ):
        self.store = store
        self.messenger = messenger
        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.object_store = object_store
        self.detect = detect
        self.translate = translate
        self.fetch = fetch

    def transcribe_media(self, content: bytes, content_type: str) -> Transcript:
        """Write, normalise and transcribe a voice note; temp files never outlive the call."""
        raw_path, wav_path = media.temp_paths(media.extension_for(content_type))
        try:
            with open(raw_path, "wb") as f:
                f.write(content)
            media.to_wav(raw_path, wav_path)
            return self.transcriber.transcribe(wav_path)
        finally:
            media.remove_quietly(raw_path, wav_path)

    def run(self, user: Dict[str, Any], message: InboundMessage) -> Optional[PipelineResult]:
        """
        Translate one inbound message for a READY user and send the replies.

        Returns:
            PipelineResult, or None when there was nothing to translate
        """
        sender = message.sender
        if message.has_media:
            content, content_type = self.fetch(message.media_url)
            content_type = content_type or message.media_type or ""
            if "pdf" in content_type.lower():
                return self._run_document(user, sender, content)
            transcript = self.transcribe_media(content, content_type)
            original, detected, kind = transcript.text, transcript.language, "voice"
        else:
            original, detected, kind = message.body.strip(), "", "text"

        if not original:
            self.messenger.send(sender, EMPTY_MESSAGE)
            return None

        detected = detected or self.detect(original)
        destination = choose_destination(detected, user["source_lang"], user["target_lang"])
        translated = self.translate(original, destination)
        result = PipelineResult(original, translated, detected, destination, 1, kind)
        self._record(user, result)

        if kind == "text":
            self.messenger.send(sender, translated)
            return result

        self.messenger.send(sender, f"🗣 {original}")
        self.messenger.send(sender, translated)
        self._send_audio(user, sender, translated, destination)
        return result

    def _run_document(self, user: Dict[str, Any], sender: str, content: bytes) -> Optional[PipelineResult]:
        doc = documents.extract_pdf_text(content)
        if not doc.text:
            self.messenger.send(sender, EMPTY_DOCUMENT)
            return None

        detected = self.detect(doc.text[:DETECT_SAMPLE_CHARS])
        destination = choose_destination(detected, user["source_lang"], user["target_lang"])
        translated = self.translate(doc.text, destination, max_tokens=DOCUMENT_MAX_TOKENS)
        result = PipelineResult(doc.text, translated, detected, destination, doc.credits, "pdf")
        self._record(user, result)

        url = self.object_store.upload_document(translated)
        self.messenger.send(sender, f"📄 {shorten(translated, 300)}")
        self.messenger.send(sender, f"📎 Full translation ({doc.pages} page(s)): {url}")
        return result

    def _record(self, user: Dict[str, Any], result: PipelineResult) -> None:
        if is_free_plan(user):
            self.store.add_free_usage(user["phone_number"], result.credits)
        self.store.log_translation(
            phone_number=user["phone_number"],
            original_text=result.original,
            translated_text=result.translated,
            language_from=result.detected,
            language_to=result.destination,
            credits=result.credits,
            media_kind=result.kind,
        )
        logger.info(
            f"{result.kind} {result.detected}->{result.destination} for {user['phone_number']} "
            f"({result.credits} credit(s))"
        )

    def _send_audio(self, user: Dict[str, Any], sender: str, text: str, lang: str) -> None:
        try:
            mp3 = self.synthesizer.synthesize(text, lang, user.get("voice_gender"))
            url = self.object_store.upload_audio(mp3)
            self.messenger.send(sender, media_url=url)
        except Exception:
            # transcript and translation are already out
            logger.exception(f"TTS/upload error for {sender}")
