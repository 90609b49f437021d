import pytest

from src.schulmanager.config import SchulmanagerConfig


@pytest.fixture
def config() -> SchulmanagerConfig:
    return SchulmanagerConfig(
        _env_file=None,
        schulmanager_email="eltern@example.org",
        schulmanager_password="geheim",
        block_resources=False,
        login_settle_ms=0,
        post_login_settle_ms=0,
        schedule_settle_ms=0,
    )
