from app.config.settings import Settings


def _settings(**overrides) -> Settings:
    values = {"SUPABASE_URL": "http://localhost:54321", "SUPABASE_KEY": "anon"}
    values.update(overrides)
    return Settings(**values)


def test_cors_origin_list_supports_comma_separated_values() -> None:
    settings = _settings(CORS_ORIGINS="http://localhost:5173, http://localhost:3000,")
    assert settings.get_cors_origins_list() == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_attachment_limits_default_to_five_and_twenty_megabytes() -> None:
    settings = _settings()
    assert settings.attachment_max_image_mb == 5
    assert settings.attachment_max_file_mb == 20


def test_production_flag() -> None:
    assert _settings(ENVIRONMENT="production").is_production
    assert not _settings(ENVIRONMENT="test").is_production
