"""Tests for environment-driven settings."""

import pytest

from hallbooking.config import Settings, load_settings


def test_defaults_from_empty_env():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.buffer_minutes == 44
    assert (settings.day_floor, settings.day_ceil) == (360, 1380)


def test_overrides():
    settings = load_settings(
        {
            "HALLBOOKING_BUFFER_MINUTES": "15",
            "HALLBOOKING_DAY_START": "08:00",
            "HALLBOOKING_MAX_SUGGESTIONS": "3",
            "HALLBOOKING_LOG_LEVEL": "debug",
        }
    )
    assert settings.buffer_minutes == 15
    assert settings.day_floor == 480
    assert settings.max_suggestions == 3
    assert settings.log_level == "DEBUG"


def test_bad_integer():
    with pytest.raises(ValueError, match="HALLBOOKING_BUFFER_MINUTES"):
        load_settings({"HALLBOOKING_BUFFER_MINUTES": "lots"})
