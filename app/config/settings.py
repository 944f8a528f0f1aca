from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    config_path: str = "config/redactor.json"
    config_max_retries: int = 10
    config_retry_delay_seconds: float = 1.0

    assets_root: str = "assets"
    assets_base_url: str = "/redactor-assets"

    enabled: bool = True
    mutation_debounce_ms: int = 50
    reveal_delay_ms: int = 300
    orphan_cleanup_every: int = 50
