import pytest

from tagcatalog.core.config import DEFAULT_DATABASE_URL, load_settings


def test_load_settings_dev_defaults() -> None:
    s = load_settings({"APP_ENV": "dev"})
    assert s.app_env == "dev"
    assert s.is_prod is False
    assert s.database_url == DEFAULT_DATABASE_URL
    assert s.log_level == "INFO"
    assert s.default_page_size == 25
    assert s.max_page_size == 200


def test_load_settings_prod_requires_database_url() -> None:
    with pytest.raises(ValueError, match="DATABASE_URL"):
        load_settings({"APP_ENV": "prod"})


def test_load_settings_prod_with_database_url() -> None:
    s = load_settings({"APP_ENV": "production", "DATABASE_URL": "sqlite+aiosqlite:///./x.db"})
    assert s.is_prod is True
    assert s.database_url == "sqlite+aiosqlite:///./x.db"


def test_load_settings_page_sizes_are_clamped() -> None:
    s = load_settings({"APP_ENV": "dev", "MAX_PAGE_SIZE": "50", "DEFAULT_PAGE_SIZE": "500"})
    assert s.max_page_size == 50
    assert s.default_page_size == 50


def test_load_settings_invalid_int_falls_back_to_default() -> None:
    s = load_settings({"APP_ENV": "dev", "DEFAULT_PAGE_SIZE": "many", "LOG_LEVEL": "debug"})
    assert s.default_page_size == 25
    assert s.log_level == "DEBUG"
