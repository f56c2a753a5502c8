import pytest

from votechain import config


@pytest.fixture
def settings(monkeypatch):
    for name in ("DATABASE_URL", "DATABASE_USER", "DATABASE_PASS", "DATABASE_HOST", "DATABASE_NAME"):
        monkeypatch.setattr(config, name, None)
    monkeypatch.setattr(config, "PACKAGE_ID", "0xpkg")
    monkeypatch.setattr(config, "POLLING_INTERVAL_MS", 5000)
    monkeypatch.setattr(config, "QUERY_PAGE_SIZE", 50)
    return monkeypatch


def test_database_url_takes_precedence(settings):
    settings.setattr(config, "DATABASE_URL", "sqlite+aiosqlite:///votechain.db")
    settings.setattr(config, "DATABASE_HOST", "db")

    assert config.get_database_url() == "sqlite+aiosqlite:///votechain.db"


def test_database_url_from_credentials(settings):
    settings.setattr(config, "DATABASE_USER", "votechain")
    settings.setattr(config, "DATABASE_PASS", "secret")
    settings.setattr(config, "DATABASE_HOST", "db:3306")
    settings.setattr(config, "DATABASE_NAME", "votes")

    assert config.get_database_url() == "mysql+asyncmy://votechain:secret@db:3306/votes"


def test_check_config_names_every_missing_value(settings):
    settings.setattr(config, "PACKAGE_ID", "")
    settings.setattr(config, "QUERY_PAGE_SIZE", 0)

    with pytest.raises(config.ConfigError) as exc_info:
        config.check_config()

    message = str(exc_info.value)
    assert "DATABASE_URL" in message
    assert "PACKAGE_ID" in message
    assert "QUERY_PAGE_SIZE" in message
    assert "POLLING_INTERVAL_MS" not in message


def test_check_config_accepts_complete_settings(settings):
    settings.setattr(config, "DATABASE_URL", "sqlite+aiosqlite:///votechain.db")

    config.check_config()
