from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    storage_backend: str = "sqlite"
    sqlite_path: str = "data/documents.db"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "docvault"
    db_username: str = "docvault"
    db_password: str = "secret"

    pdf_engine: str = "pdfplumber"
    # Structured text shorter than this is not trusted; OCR runs instead.
    structured_text_threshold: int = 500

    ocr_engine: str = "tesseract"
    ocr_language: str = "eng"
    ocr_max_pages: int = 5
    ocr_render_scale: float = 1.5

    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 60

    stage_timeout_seconds: float = 120.0

    inbox_dir: str = "data/inbox"
    inbox_poll_interval_seconds: int = 5
    max_concurrent_ingestions: int = 4
