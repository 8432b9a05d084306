#!/usr/bin/env python3
"""
Tests for the thin external-service wrappers: transcription, language
detection, translation, media download, PDF text and outbound messages.
"""

from io import BytesIO
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests
from pypdf import PdfWriter

import documents
import media
import nlu
from messaging import Messenger
from speech import Transcriber, TranscriptionError, language_code


class TestTranscriber:

    @pytest.fixture
    def wav_file(self, tmp_path):
        path = tmp_path / 'note.wav'
        path.write_bytes(b'RIFF')
        return str(path)

    def test_primary_model(self, wav_file):
        client = MagicMock()
        client.audio.transcriptions.create.return_value = SimpleNamespace(text=' Hola ', language='spanish')

        transcript = Transcriber(client, models=['whisper-large-v3', 'whisper-1']).transcribe(wav_file)

        assert transcript.text == 'Hola'
        assert transcript.language == 'es'
        assert client.audio.transcriptions.create.call_count == 1
        assert client.audio.transcriptions.create.call_args.kwargs['model'] == 'whisper-large-v3'

    def test_falls_back_to_second_model(self, wav_file):
        client = MagicMock()
        client.audio.transcriptions.create.side_effect = [
            RuntimeError('model not found'),
            SimpleNamespace(text='Bonjour', language='fr'),
        ]

        transcript = Transcriber(client, models=['whisper-large-v3', 'whisper-1']).transcribe(wav_file)

        assert transcript.text == 'Bonjour'
        models = [c.kwargs['model'] for c in client.audio.transcriptions.create.call_args_list]
        assert models == ['whisper-large-v3', 'whisper-1']

    def test_both_models_failing(self, wav_file):
        client = MagicMock()
        client.audio.transcriptions.create.side_effect = RuntimeError('down')
        with pytest.raises(TranscriptionError):
            Transcriber(client, models=['a', 'b']).transcribe(wav_file)

    def test_missing_client(self, wav_file):
        with pytest.raises(TranscriptionError):
            Transcriber(None).transcribe(wav_file)

    @pytest.mark.parametrize('reported, code', [
        ('en', 'en'), ('English', 'en'), ('pt-BR', 'pt'), ('german', 'de'), ('klingon', ''), (None, ''),
    ])
    def test_language_code(self, reported, code):
        assert language_code(reported) == code


class TestLanguageServices:

    def test_detect_language(self):
        response = MagicMock()
        response.json.return_value = {'data': {'detections': [[{'language': 'es-419', 'confidence': 1}]]}}
        with patch('nlu.requests.post', return_value=response) as post:
            assert nlu.detect_language('Hola', api_key='k') == 'es'
        assert post.call_args.kwargs['json'] == {'q': 'Hola'}
        assert post.call_args.kwargs['params'] == {'key': 'k'}

    def test_translate_uses_instruction_and_strips(self):
        model = MagicMock()
        model.generate_content.return_value = SimpleNamespace(text='  Hello \n')
        with patch('nlu.genai.GenerativeModel', return_value=model) as factory:
            assert nlu.translate('Hola', 'en', model_name='gemini-test') == 'Hello'

        args, kwargs = factory.call_args
        assert args == ('gemini-test',)
        assert kwargs['system_instruction'] == 'Translate to en. Return ONLY the translation.'
        assert kwargs['generation_config'] == {'max_output_tokens': nlu.TRANSLATE_MAX_TOKENS}
        model.generate_content.assert_called_once_with('Hola')

    def test_translate_removes_code_fence(self):
        model = MagicMock()
        model.generate_content.return_value = SimpleNamespace(text='```Hello```')
        with patch('nlu.genai.GenerativeModel', return_value=model):
            assert nlu.translate('Hola', 'en') == 'Hello'

    def test_empty_translation_raises(self):
        model = MagicMock()
        model.generate_content.return_value = SimpleNamespace(text='   ')
        with patch('nlu.genai.GenerativeModel', return_value=model):
            with pytest.raises(nlu.TranslationError):
                nlu.translate('Hola', 'en')


class TestMedia:

    @pytest.mark.parametrize('content_type, ext', [
        ('audio/ogg; codecs=opus', '.ogg'), ('audio/mpeg', '.mp3'), ('audio/mp4', '.m4a'),
        ('audio/x-m4a', '.m4a'), ('application/pdf', '.pdf'), ('audio/amr', '.dat'), (None, '.dat'),
    ])
    def test_extension_for(self, content_type, ext):
        assert media.extension_for(content_type) == ext

    def test_fetch_media_uses_twilio_auth(self):
        response = MagicMock(content=b'OggS', headers={'content-type': 'audio/ogg'})
        with patch('media.requests.get', return_value=response) as get:
            assert media.fetch_media('https://api.twilio.com/m/1') == (b'OggS', 'audio/ogg')
        assert get.call_args.kwargs['auth'] == ('ACtest_account_sid', 'test_auth_token')

    def test_fetch_media_failure(self):
        with patch('media.requests.get', side_effect=requests.exceptions.ConnectionError('down')):
            with pytest.raises(media.MediaDownloadError):
                media.fetch_media('https://api.twilio.com/m/1')

    def test_temp_paths_share_stem(self):
        raw, wav = media.temp_paths('.ogg')
        assert raw.endswith('.ogg') and wav.endswith('.wav')
        assert raw[:-4] == wav[:-4]

    def test_remove_quietly(self, tmp_path):
        existing = tmp_path / 'a.ogg'
        existing.write_bytes(b'x')
        media.remove_quietly(str(existing), str(tmp_path / 'missing.wav'), None)
        assert not existing.exists()


class TestDocuments:

    def blank_pdf(self, pages):
        writer = PdfWriter()
        for _ in range(pages):
            writer.add_blank_page(width=200, height=200)
        buffer = BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    def test_blank_pages_are_counted(self):
        doc = documents.extract_pdf_text(self.blank_pdf(2))
        assert doc.text == ''
        assert doc.pages == 2
        assert doc.credits == 2

    def test_document_costs_at_least_one_credit(self):
        assert documents.DocumentText('', 0).credits == 1

    def test_unreadable_pdf(self):
        with pytest.raises(documents.DocumentError):
            documents.extract_pdf_text(b'definitely not a pdf')


class TestMessenger:

    def test_text_and_media_are_separate_messages(self):
        client = MagicMock()
        messenger = Messenger(client, from_number='whatsapp:+14155238886')

        messenger.send('whatsapp:+1555', 'Hola')
        messenger.send('whatsapp:+1555', media_url='https://cdn.example.com/a.mp3')

        first, second = client.messages.create.call_args_list
        assert first.kwargs == {'from_': 'whatsapp:+14155238886', 'to': 'whatsapp:+1555', 'body': 'Hola'}
        assert second.kwargs == {'from_': 'whatsapp:+14155238886', 'to': 'whatsapp:+1555',
                                 'media_url': ['https://cdn.example.com/a.mp3']}

    def test_missing_client(self):
        with pytest.raises(RuntimeError):
            Messenger(None).send('whatsapp:+1555', 'Hola')
