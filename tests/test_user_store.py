#!/usr/bin/env python3
"""
Tests for the SQLite user store.

Covers creation, partial updates by the different lookup keys, quota
increments and the append-only translation log.
"""

import sqlite3

import pytest

from user_store import UserStore

PHONE = 'whatsapp:+15550100'


class TestUserStore:

    def test_unknown_user_is_none(self, store):
        assert store.get_user(PHONE) is None

    def test_create_user_defaults(self, store):
        user = store.create_user(PHONE)
        assert user['phone_number'] == PHONE
        assert user['language_step'] == 'INIT'
        assert user['plan'] == 'FREE'
        assert user['free_used'] == 0
        assert user['source_lang'] is None
        assert user['id']

    def test_create_user_twice_keeps_first_row(self, store):
        first = store.create_user(PHONE)
        second = store.create_user(PHONE)
        assert first['id'] == second['id']
        assert store.get_user_count() == 1

    def test_update_user_sets_and_clears_columns(self, store):
        store.create_user(PHONE)
        assert store.update_user(PHONE, source_lang='en', target_lang='es') == 1
        assert store.update_user(PHONE, target_lang=None) == 1
        user = store.get_user(PHONE)
        assert user['source_lang'] == 'en'
        assert user['target_lang'] is None

    def test_update_where_reports_zero_rows(self, store):
        store.create_user(PHONE)
        assert store.update_where('stripe_cust_id', 'cus_missing', plan='ANNUAL') == 0
        assert store.update_where('stripe_cust_id', None, plan='ANNUAL') == 0
        assert store.get_user(PHONE)['plan'] == 'FREE'

    def test_update_where_by_id(self, store):
        user = store.create_user(PHONE)
        assert store.update_where('id', user['id'], stripe_cust_id='cus_1') == 1
        assert store.get_user(PHONE)['stripe_cust_id'] == 'cus_1'

    def test_update_rejects_unknown_columns(self, store):
        store.create_user(PHONE)
        with pytest.raises(ValueError):
            store.update_user(PHONE, phone_number='whatsapp:+1')
        with pytest.raises(ValueError):
            store.update_where('plan', 'FREE', free_used=0)

    def test_add_free_usage_increments(self, store):
        store.create_user(PHONE)
        store.add_free_usage(PHONE)
        store.add_free_usage(PHONE, 3)
        assert store.get_user(PHONE)['free_used'] == 4
        with pytest.raises(ValueError):
            store.add_free_usage(PHONE, 0)

    def test_log_translation_appends(self, store):
        entry_id = store.log_translation(PHONE, 'Hola', 'Hello', 'es', 'en')
        store.log_translation(PHONE, 'doc', 'doc', 'es', 'en', credits=3, media_kind='pdf')

        conn = sqlite3.connect(store.db_path)
        conn.row_factory = sqlite3.Row
        rows = conn.execute("SELECT * FROM translations ORDER BY credits").fetchall()
        conn.close()

        assert len(rows) == 2
        assert rows[0]['id'] == entry_id
        assert rows[0]['original_text'] == 'Hola'
        assert rows[0]['translated_text'] == 'Hello'
        assert rows[0]['media_kind'] == 'text'
        assert rows[1]['credits'] == 3

    def test_initialize_is_repeatable(self, tmp_path):
        store = UserStore(str(tmp_path / 'again.db'))
        store.initialize()
        store.initialize()
        assert store.get_user_count() == 0
