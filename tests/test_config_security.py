from __future__ import annotations

import pytest
from pydantic import ValidationError

from studiohub.core.config import Settings
from studiohub.core.database import engine_options


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me-in-production")


def test_debug_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="super-secure-value", debug=True)


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_unknown_business_timezone_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, business_timezone="Mars/Olympus_Mons")


def test_policy_category_is_normalized() -> None:
    settings = Settings(_env_file=None, default_policy_category=" premium ")
    assert settings.default_policy_category == "PREMIUM"


def test_min_gap_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, schedule_min_gap_minutes=0)


def test_engine_options_read_committed_with_lock_timeout() -> None:
    settings = Settings(_env_file=None, db_lock_timeout_ms=2500)

    options = engine_options(settings)

    assert options["isolation_level"] == "READ COMMITTED"
    assert options["connect_args"]["server_settings"]["lock_timeout"] == "2500"
    assert options["connect_args"]["server_settings"]["application_name"] == settings.app_name


def test_lock_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, db_lock_timeout_ms=0)
