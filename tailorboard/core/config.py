from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from tailorboard.core.errors import ConfigurationError


class Settings(BaseSettings):
    app_name: str = "tailorboard"
    environment: str = "dev"
    log_level: str = "INFO"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    razorpay_key_id: str | None = None
    google_maps_api_key: str | None = None
    gateway_timeout_seconds: float = 10.0
    otel_enabled: bool = True
    otel_service_name: str = "tailorboard-client"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="TB_", extra="ignore")

    def require_backend(self) -> tuple[str, str]:
        """Return the backend url and anon key, failing fast when either is unset."""
        if self.supabase_url and self.supabase_anon_key:
            return self.supabase_url, self.supabase_anon_key
        missing = [
            name
            for name, value in (("TB_SUPABASE_URL", self.supabase_url), ("TB_SUPABASE_ANON_KEY", self.supabase_anon_key))
            if not value
        ]
        raise ConfigurationError(f"missing backend configuration: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
