from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_PROVIDERS = ("anthropic", "groq", "gemini")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Provider credentials (comma-separated pools, rotated round-robin)
    anthropic_keys: str = ""
    groq_keys: str = ""
    gemini_keys: str = ""

    # Role routing
    architect_provider: str = "anthropic"
    engineer_provider: str = "groq"

    # Models
    anthropic_model: str = "claude-sonnet-4-20250514"
    groq_model: str = "llama-3.3-70b-versatile"
    gemini_model: str = "gemini-2.0-flash"

    # Generation parameters per role
    architect_max_tokens: int = 4096
    architect_temperature: float = 1.0
    engineer_max_tokens: int = 8000
    engineer_temperature: float = 0.7

    # Upstream call bound
    provider_timeout_seconds: float = 60.0

    # Response cache
    response_cache_ttl_seconds: float = 3600.0

    # Per-caller fixed window rate limiting
    rate_limit_max_requests: int = 50
    rate_limit_window_seconds: float = 3600.0

    # Credits
    daily_credits: int = 10

    # Publishing
    site_cdn_base_url: str = "https://cdn.jsdelivr.net/gh/Inflexibler/Zenex-users-data-1@main"
    site_preview_base_url: str = "https://zenex.app"

    # App
    app_env: str = "development"
    app_debug: bool = True

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    def provider_keys(self, provider: str) -> str:
        """Raw credential string for a provider id."""
        return getattr(self, f"{provider}_keys", "")

    def provider_model(self, provider: str) -> str:
        return getattr(self, f"{provider}_model", "")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    for role in ("architect", "engineer"):
        provider = getattr(settings, f"{role}_provider")
        if provider not in KNOWN_PROVIDERS:
            errors.append(f"{role.upper()}_PROVIDER must be one of {', '.join(KNOWN_PROVIDERS)} (got '{provider}')")
            continue
        if not settings.provider_keys(provider).strip(", "):
            errors.append(f"{provider.upper()}_KEYS must be set ({role} role is routed to {provider})")

    if settings.provider_timeout_seconds <= 0:
        errors.append("PROVIDER_TIMEOUT_SECONDS must be positive")

    if settings.is_production:
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
