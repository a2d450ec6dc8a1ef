import pytest

from lgl_sync.core.environment import detect_development_environment, is_development_environment


@pytest.mark.parametrize(
    ("host", "site_url", "server_addr"),
    [
        ("localhost:8080", "", None),
        ("members.local", "", None),
        ("", "https://staging.example.org", None),
        ("shop.test", None, None),
        ("example.dev", None, None),
        ("members.example.org", "https://members.example.org", "127.0.0.1"),
        (None, None, None),
    ],
)
def test_development_signals(host, site_url, server_addr) -> None:
    assert detect_development_environment(host, site_url, server_addr) is True


def test_production_host_is_not_development() -> None:
    assert detect_development_environment("www.example.org", "https://www.example.org", "203.0.113.5") is False


def test_non_production_settings_always_count_as_development(test_settings) -> None:
    assert is_development_environment(test_settings) is True

    production = test_settings.model_copy(
        update={"environment": "production", "site_url": "https://www.example.org", "site_host": "www.example.org"}
    )
    local_production = production.model_copy(update={"site_url": "http://localhost:8000", "site_host": None})

    assert is_development_environment(production) is False
    assert is_development_environment(local_production) is True
