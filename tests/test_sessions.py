"""
Tests for prompt injection bookkeeping
"""
from datetime import timedelta
import pytest
from sessions import DEFAULT_SESSION, PROMPTS, XMLUI_RULES, SessionManager


class TestSessionManager:

    @pytest.mark.unit
    def test_catalogue(self):
        assert PROMPTS["xmlui_rules"] is XMLUI_RULES
        assert "list_howto" in XMLUI_RULES.content

    @pytest.mark.unit
    def test_get_or_create_is_idempotent(self):
        sm = SessionManager()
        a = sm.get_or_create("x")
        b = sm.get_or_create("x")
        assert a is b
        assert sm.get("x") is a

    @pytest.mark.unit
    def test_inject(self):
        sm = SessionManager()
        ok, _ = sm.inject_prompt(DEFAULT_SESSION, "xmlui_rules")
        assert ok
        session = sm.get(DEFAULT_SESSION)
        assert session.injected_prompts == ["xmlui_rules"]
        assert session.context == [XMLUI_RULES.content]

    @pytest.mark.unit
    def test_inject_twice(self):
        sm = SessionManager()
        sm.inject_prompt("s", "xmlui_rules")
        ok, msg = sm.inject_prompt("s", "xmlui_rules")
        assert not ok
        assert "already injected" in msg
        assert sm.get("s").injected_prompts == ["xmlui_rules"]

    @pytest.mark.unit
    def test_inject_unknown_prompt(self):
        sm = SessionManager()
        ok, msg = sm.inject_prompt("s", "nope")
        assert not ok
        assert "not found" in msg
        assert sm.get("s") is None


class TestIdleSessions:

    @pytest.mark.unit
    def test_new_session_drops_idle_ones(self):
        sm = SessionManager(max_idle=timedelta(hours=1))
        old = sm.get_or_create("old")
        sm.get_or_create("recent")
        old.last_activity -= timedelta(hours=2)
        sm.get_or_create("new")
        assert sm.get("old") is None
        assert sm.get("recent") is not None
        assert sm.get("new") is not None

    @pytest.mark.unit
    def test_default_session_is_kept(self):
        sm = SessionManager(max_idle=timedelta(hours=1))
        sm.inject_prompt(DEFAULT_SESSION, "xmlui_rules")
        sm.get(DEFAULT_SESSION).last_activity -= timedelta(days=3)
        sm.get_or_create("other")
        assert sm.get(DEFAULT_SESSION).injected_prompts == ["xmlui_rules"]

    @pytest.mark.unit
    def test_existing_session_access_does_not_sweep(self):
        sm = SessionManager(max_idle=timedelta(hours=1))
        old = sm.get_or_create("old")
        sm.get_or_create("active")
        old.last_activity -= timedelta(hours=2)
        sm.get_or_create("active")
        assert sm.get("old") is old
