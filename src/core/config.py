"""
Application settings.

Defaults suit a local development setup; every value can be overridden through
the environment or a `.env` file (e.g. `DATABASE_URL=postgresql+psycopg://...`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Tic-Tac-Toe Rooms"

    # Room store (server side)
    DATABASE_URL: str = "sqlite:///./tictactoe.db"
    ROOM_ID_LENGTH: int = 4
    ROOM_ID_ATTEMPTS: int = 20
    ALLOW_SPECTATORS: bool = True

    # Clients
    API_BASE_URL: str = "http://localhost:3000/api"
    POLL_INTERVAL_SECONDS: float = 2.0
    HTTP_TIMEOUT_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
