from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_URL: str = "http://localhost:3001/api"
    SOCKET_URL: str | None = None
    SOCKET_PATH: str = "socket.io"
    SOCKET_TRANSPORTS: list[str] = ["websocket", "polling"]

    REQUEST_TIMEOUT: float = 15.0

    MESSAGE_PAGE_SIZE: int = 50
    POLL_INTERVAL_SECONDS: float = 8.0
    TYPING_STOP_DELAY: float = 1.0
    SUCCESS_MESSAGE_TTL: float = 3.0

    TOKEN_FILE: str = "~/.rental_client/token"
    LOG_LEVEL: str = "INFO"

    @property
    def socket_url(self) -> str:
        """Realtime endpoint; the REST base without its ``/api`` suffix unless overridden."""
        if self.SOCKET_URL:
            return self.SOCKET_URL
        base = self.API_URL.rstrip("/")
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return base

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
