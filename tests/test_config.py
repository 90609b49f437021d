from src.schulmanager.config import CANCELLED, SUBSTITUTIONS, TIMETABLE, SchulmanagerConfig


def test_ttl_per_category(config):
    assert config.ttl_for(TIMETABLE) == 21600
    assert config.ttl_for(SUBSTITUTIONS) == 1800
    assert config.ttl_for(CANCELLED) == 1800
    assert config.ttl_for("anything") == 600


def test_credentials(config, monkeypatch):
    assert config.has_credentials
    monkeypatch.delenv("SCHULMANAGER_EMAIL", raising=False)
    monkeypatch.delenv("SCHULMANAGER_PASSWORD", raising=False)
    assert not SchulmanagerConfig(_env_file=None).has_credentials


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PAGE_POOL_SIZE", "3")
    monkeypatch.setenv("HEADLESS", "false")
    config = SchulmanagerConfig(_env_file=None)
    assert config.page_pool_size == 3
    assert config.headless is False
