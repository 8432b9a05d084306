"""
Inbound media handling: download from Twilio and normalise audio for transcription.
"""

import os
import tempfile
import uuid
from typing import Optional, Tuple

import requests
from pydub import AudioSegment

import settings
from logging_config import get_logger

logger = get_logger(__name__)


class MediaDownloadError(Exception):
    """Raised when inbound media cannot be fetched from the messaging provider."""


def extension_for(content_type: Optional[str]) -> str:
    """Container extension inferred from a content-type header."""
    ctype = (content_type or "").lower()
    if "ogg" in ctype:
        return ".ogg"
    if "mpeg" in ctype:
        return ".mp3"
    if "mp4" in ctype or "m4a" in ctype:
        return ".m4a"
    if "pdf" in ctype:
        return ".pdf"
    return ".dat"


def fetch_media(media_url: str, timeout: float = settings.HTTP_TIMEOUT) -> Tuple[bytes, str]:
    """
    Download inbound media using Twilio basic auth.

    Returns:
        (content bytes, content-type header)
    """
    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        raise MediaDownloadError("Missing Twilio credentials for media download")

    logger.info(f"Downloading media from {media_url}")
    try:
        response = requests.get(
            media_url,
            auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise MediaDownloadError(f"Download failed for {media_url}") from e

    content_type = response.headers.get("content-type", "")
    logger.info(f"Downloaded {len(response.content)} bytes ({content_type or 'unknown type'})")
    return response.content, content_type


def to_wav(input_path: str, output_path: str) -> str:
    """Transcode any ffmpeg-readable file to mono 16 kHz 16-bit PCM WAV."""
    segment = AudioSegment.from_file(input_path)
    segment = segment.set_channels(1).set_frame_rate(16000).set_sample_width(2)
    segment.export(output_path, format="wav")
    return output_path


def temp_paths(extension: str) -> Tuple[str, str]:
    """A (raw, wav) pair of unique temp paths sharing one stem."""
    stem = os.path.join(tempfile.gettempdir(), str(uuid.uuid4()))
    return f"{stem}{extension}", f"{stem}.wav"


def remove_quietly(*paths: str) -> None:
    for path in paths:
        if path and os.path.exists(path):
            try:
                os.remove(path)
                logger.debug(f"Cleaned up {path}")
            except OSError as e:
                logger.warning(f"Could not delete temp file {path}: {e}")
