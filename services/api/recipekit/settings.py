from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./recipekit.db"
    auto_create_tables: bool = True

    # Display
    display_precision: int = 2

    # Rate limiting (slowapi syntax)
    rate_limit_default: str = "100/minute"
    rate_limit_enabled: bool = True

    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost",
        "http://127.0.0.1",
    ]


settings = Settings()
