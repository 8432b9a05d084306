import pytest

from languages import tr, welcome_message
from onboarding import INCOMPLETE_SETUP, LanguageStep, advance, is_ready, reset_outcome


def user(**fields):
    row = {
        'phone_number': 'whatsapp:+1555', 'language_step': 'INIT', 'ui_lang': None,
        'source_lang': None, 'target_lang': None, 'voice_gender': None,
    }
    row.update(fields)
    return row


class TestChooseSource:
    def test_valid_digit_stores_source_and_ui_language(self):
        outcome = advance(user(), "3")
        assert outcome.updates == {
            'ui_lang': 'fr', 'source_lang': 'fr', 'language_step': 'CHOOSE_SOURCE',
        }
        assert outcome.replies[0] == tr('fr', 'how')
        assert outcome.replies[1].startswith(tr('fr', 'receive'))

    def test_invalid_reply_resends_english_menu_without_advancing(self):
        outcome = advance(user(), "hello")
        assert outcome.updates == {}
        assert not outcome.advanced
        assert outcome.replies == [tr('en', 'reply1to5') + "\n" + welcome_message()]

    def test_unknown_stored_step_restarts_wizard(self):
        assert LanguageStep.of('ui') is LanguageStep.INIT
        assert LanguageStep.of(None) is LanguageStep.INIT
        assert advance(user(language_step='bogus'), "2").updates['source_lang'] == 'es'


class TestChooseTarget:
    @pytest.mark.parametrize("digit, code", [("2", "es"), ("3", "fr"), ("4", "pt"), ("5", "de")])
    def test_digit_maps_to_menu_code(self, digit, code):
        outcome = advance(user(language_step='CHOOSE_SOURCE', source_lang='en', ui_lang='en'), digit)
        assert outcome.updates == {'target_lang': code, 'language_step': 'CHOOSE_TARGET'}
        assert outcome.replies == [tr('en', 'voice')]

    def test_same_language_is_refused(self):
        outcome = advance(user(language_step='CHOOSE_SOURCE', source_lang='es', ui_lang='es'), "2")
        assert outcome.updates == {}
        assert outcome.replies[0].startswith(tr('es', 'targetDiff'))

    def test_invalid_reply_reprompts_in_ui_language(self):
        outcome = advance(user(language_step='CHOOSE_SOURCE', source_lang='de', ui_lang='de'), "x")
        assert outcome.updates == {}
        assert outcome.replies[0].startswith(tr('de', 'reply1to5'))


class TestChooseGender:
    def base(self, **extra):
        fields = dict(language_step='CHOOSE_TARGET', source_lang='en', target_lang='es', ui_lang='en')
        fields.update(extra)
        return user(**fields)

    def test_female_word_finishes_setup(self):
        outcome = advance(self.base(), "Female")
        assert outcome.updates == {'voice_gender': 'FEMALE', 'language_step': 'READY'}
        assert outcome.replies == [tr('en', 'setupDone')]

    def test_digit_one_is_male(self):
        assert advance(self.base(), "1").updates['voice_gender'] == 'MALE'

    def test_invalid_reply_reprompts(self):
        outcome = advance(self.base(), "maybe")
        assert outcome.updates == {}
        assert outcome.replies == [tr('en', 'genderErr')]

    def test_interrupted_gender_step_completes(self):
        outcome = advance(self.base(language_step='CHOOSE_GENDER', voice_gender='MALE'), "anything")
        assert outcome.updates == {'language_step': 'READY'}


class TestReady:
    def test_ready_user_needs_no_wizard(self):
        row = user(language_step='READY', source_lang='en', target_lang='es', voice_gender='MALE')
        assert is_ready(row)
        outcome = advance(row, "hola")
        assert outcome.updates == {} and outcome.replies == []

    def test_incomplete_ready_row_asks_for_reset(self):
        row = user(language_step='READY', source_lang='en', target_lang='es')
        assert not is_ready(row)
        assert advance(row, "hola").replies == [INCOMPLETE_SETUP]


def test_full_wizard_keeps_languages_distinct():
    row = user()
    for reply in ("1", "1", "2", "2"):
        outcome = advance(row, reply)
        row.update(outcome.updates)
    assert row['language_step'] == 'READY'
    assert row['source_lang'] == 'en'
    assert row['target_lang'] == 'es'
    assert row['source_lang'] != row['target_lang']
    assert row['voice_gender'] == 'FEMALE'


def test_reset_is_idempotent():
    first = reset_outcome()
    second = reset_outcome()
    assert first == second
    assert first.updates['language_step'] == 'INIT'
    assert all(first.updates[k] is None for k in ('source_lang', 'target_lang', 'voice_gender', 'ui_lang'))
    assert first.replies == [welcome_message()]
