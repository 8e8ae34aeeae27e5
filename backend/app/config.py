from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    environment: str = "development"
    log_level: str = "INFO"
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Anthropic
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 2048

    # Ingestion defaults
    default_origin: str = "USA"
    default_unit_price: float = 10.0
    default_currency: str = "USD"

    # Bulk pipeline
    duties_payer: str = "Buyer"
    enrichment_row_delay_ms: int = 200
    emission_row_delay_ms: int = 50
    progress_report_every: int = 3

    # Uploads
    max_upload_size_mb: int = 10
    allowed_file_types: set[str] = {"csv", "txt", "xlsx"}


settings = Settings()
