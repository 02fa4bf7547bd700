from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "medvault"
    db_username: str = "medvault"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    change_channel_name: str = "medical_records_changes"
    change_channel_retry_seconds: float = 1.0
    change_channel_max_retry_seconds: float = 30.0

    blob_store_engine: str = "local"
    blob_files_root: str = "/app/files"
    blob_http_base_url: str = ""
    blob_http_api_key: str = ""
    blob_bucket: str = "vault"
    blob_chunk_size_bytes: int = 64 * 1024

    max_upload_size_bytes: int = 10 * 1024 * 1024

    pdf_engine: str = "pdfplumber"

    completion_provider: str = "openrouter"
    completion_api_key: str = ""
    completion_model_name: str = ""
    completion_base_url: str = ""
    completion_timeout_seconds: float = 30
    completion_temperature: float = 0.3
    completion_language: str = "English"

    auto_dismiss_seconds: float = 3.0
    processing_tick_seconds: float = 0.15
    processing_tick_step: int = 5
    processing_tick_ceiling: int = 90

    owner_id: str = ""
    default_facility_name: str = "Unknown facility"

    summary_reuse_hours: float = 24.0
