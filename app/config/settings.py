from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Bypasses RLS; moderation checks then live in the service layer

    # Auth
    oauth_provider: str = "google"
    oauth_redirect_url: str = "http://localhost:5173"
    auth_cache_ttl_seconds: int = 60
    auth_cache_max_size: int = 500

    # Attachments
    attachment_max_image_mb: int = 5
    attachment_max_file_mb: int = 20
    default_group_image_url: str = (
        "https://images.pexels.com/photos/207692/pexels-photo-207692.jpeg"
        "?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2"
    )

    # App
    app_name: str = "gradi-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
