from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str
    db_echo: bool = False

    # JWT (tokens are issued by the auth service; we only verify them)
    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # CSV ingestion
    csv_max_size_mb: int = 5

    # PayPay exports only go back to 2023
    min_available_year: int = 2023


settings = Settings()
