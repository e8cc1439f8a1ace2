import logging

import pytest

from config.logging_config import setup_logging
from config.settings import DEFAULT_MEMBERS, get_members, get_settings, load_settings


def test_defaults():
    settings = load_settings()

    assert settings.members == DEFAULT_MEMBERS
    assert settings.total_cash == 70_000.0
    assert settings.settle_epsilon == 0.5
    assert settings.settle_max_iterations == 100
    assert settings.firebase_credentials is None
    assert settings.log_level == "INFO"


def test_members_from_environment(monkeypatch):
    monkeypatch.setenv("TRIP_MEMBERS", " Ana, Ben ,,Ana, Cy ")

    assert load_settings().members == ("Ana", "Ben", "Cy")


def test_empty_member_list_rejected(monkeypatch):
    monkeypatch.setenv("TRIP_MEMBERS", " , ")

    with pytest.raises(ValueError):
        load_settings()


def test_numeric_settings(monkeypatch):
    monkeypatch.setenv("SETTLE_EPSILON", "0.01")
    monkeypatch.setenv("SETTLE_MAX_ITERATIONS", "10")
    monkeypatch.setenv("TRIP_TOTAL_CASH", "50000")

    settings = load_settings()

    assert settings.settle_epsilon == 0.01
    assert settings.settle_max_iterations == 10
    assert settings.total_cash == 50_000.0


def test_bad_numbers_rejected(monkeypatch):
    monkeypatch.setenv("SETTLE_MAX_ITERATIONS", "lots")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("SETTLE_MAX_ITERATIONS", "0")
    with pytest.raises(ValueError):
        load_settings()


def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("TRIP_MEMBERS", "Solo")

    assert get_settings() is first
    get_settings.cache_clear()
    assert get_members() == ("Solo",)


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug")
        setup_logging("debug")

        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("grpc").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
