"""Tests for in-memory and Redis-backed session storage."""

import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import JAZZ_SOLO_ADULT
from festival.core.registration_state import RegistrationStep
from festival.core.session_manager import InMemorySessionManager, RegistrationSession
from festival.session import RedisSessionManager


@pytest.fixture
def redis_client():
    return MagicMock()


@pytest.fixture
def redis_sessions(redis_client):
    return RedisSessionManager("redis://localhost:6379/0", session_ttl_seconds=60, client=redis_client)


class TestInMemorySessionManager:
    def test_same_id_returns_same_session(self):
        sessions = InMemorySessionManager()
        assert sessions.get_or_create("a") is sessions.get_or_create("a")
        assert sessions.get_or_create("a") is not sessions.get_or_create("b")

    def test_clear(self):
        sessions = InMemorySessionManager()
        first = sessions.get_or_create("a")
        sessions.clear_session("a")
        assert sessions.get_or_create("a") is not first


class TestRegistrationSession:
    def test_reset_discards_everything(self, pricing, candidate):
        session = RegistrationSession(session_id="a", step=RegistrationStep.PAGAMENTO, registration_id=3)
        pricing.toggle_selection(session.selection, JAZZ_SOLO_ADULT)
        session.candidate = candidate

        session.reset()

        assert session.step == RegistrationStep.SELECAO
        assert session.selection.is_empty()
        assert session.candidate.name == ""
        assert session.registration_id is None


class TestRedisSessionManager:
    def test_ping_failure_is_raised(self):
        client = MagicMock()
        client.ping.side_effect = RedisConnectionError("down")
        with pytest.raises(RedisConnectionError):
            RedisSessionManager("redis://localhost:6379/0", client=client)

    def test_new_session_is_stored_with_ttl(self, redis_sessions, redis_client):
        redis_client.get.return_value = None

        session = redis_sessions.get_or_create("abc")

        assert session.session_id == "abc"
        key, ttl, payload = redis_client.setex.call_args[0]
        assert key == "session:abc"
        assert ttl == 60
        assert json.loads(payload.decode("utf-8"))["step"] == "selecao"

    def test_existing_session_is_loaded(self, redis_sessions, redis_client, pricing, candidate):
        stored = RegistrationSession(session_id="abc", step=RegistrationStep.FORMULARIO)
        pricing.toggle_selection(stored.selection, JAZZ_SOLO_ADULT)
        stored.candidate = candidate
        redis_client.get.return_value = json.dumps(stored.to_dict()).encode("utf-8")

        session = redis_sessions.get_or_create("abc")

        assert session == stored
        redis_client.setex.assert_not_called()

    def test_read_error_falls_back_to_fresh_session(self, redis_sessions, redis_client):
        redis_client.get.side_effect = RedisConnectionError("down")

        session = redis_sessions.get_or_create("abc")

        assert session.session_id == "abc"
        assert session.selection.is_empty()

    def test_write_errors_are_not_raised(self, redis_sessions, redis_client):
        redis_client.setex.side_effect = RedisConnectionError("down")
        redis_client.delete.side_effect = RedisConnectionError("down")

        redis_sessions.save_session("abc", RegistrationSession(session_id="abc"))
        redis_sessions.clear_session("abc")

    def test_clear_deletes_key(self, redis_sessions, redis_client):
        redis_sessions.clear_session("abc")
        redis_client.delete.assert_called_once_with("session:abc")
