from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LMS_", env_file=".env", extra="ignore")

    # Application
    app_name: str = "LMS API"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    seed_on_startup: bool = True
    allow_admin_signup: bool = True

    # Database
    database_url: str = "sqlite:///./lms.db"

    # Security
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Static assets, the one origin every file_url is built from
    public_base_url: str = "http://localhost:8000"
    uploads_dir: str = "uploads"

    # Premium gating when a flag row is missing or cannot be read
    feature_gate_fail_open: bool = True

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100


settings = Settings()
