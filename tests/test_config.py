from freegrab.config import Settings, load_settings


def test_defaults_match_store_endpoints(monkeypatch):
    for name in (
        "FREEGRAB_LOCALE",
        "FREEGRAB_COUNTRY",
        "FREEGRAB_TIMEOUT",
        "FREEGRAB_MAX_WORKERS",
        "FREEGRAB_GITHUB_USER",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.locale == "zh-CN"
    assert settings.country == "CN"
    assert settings.catalog_url == (
        "https://store-site-backend-static-ipv4.ak.epicgames.com/freeGamesPromotions"
        "?locale=zh-CN&country=CN&allowCountries=CN"
    )
    assert settings.content_base_url == (
        "https://store-content-ipv4.ak.epicgames.com/api/zh-CN/content"
    )
    assert settings.store_base_url == "https://store.epicgames.com/zh-CN"
    assert settings.github_user == "VarleyT"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FREEGRAB_LOCALE", "en-US")
    monkeypatch.setenv("FREEGRAB_COUNTRY", "us")
    monkeypatch.setenv("FREEGRAB_TIMEOUT", "7.5")
    monkeypatch.setenv("FREEGRAB_MAX_WORKERS", "0")
    monkeypatch.setenv("FREEGRAB_DISPLAY_OFFSET_HOURS", "-5")
    monkeypatch.setenv("FREEGRAB_GITHUB_USER", "off")
    settings = load_settings()
    assert settings.locale == "en-US"
    assert settings.country == "US"
    assert settings.timeout == 7.5
    assert settings.max_workers == Settings().max_workers
    assert settings.display_offset_hours == -5
    assert settings.github_user is None
    assert "allowCountries=US" in settings.catalog_url


def test_blank_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("FREEGRAB_LOCALE", "   ")
    monkeypatch.setenv("FREEGRAB_TIMEOUT", "soon")
    settings = load_settings()
    assert settings.locale == "zh-CN"
    assert settings.timeout == Settings().timeout
