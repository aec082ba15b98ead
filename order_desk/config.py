import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Storage: memory | json | http | sql
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "json")
    DB_FILE_PATH: str = os.getenv("DB_FILE_PATH", "db.json")
    DATA_API_URL: str = os.getenv("DATA_API_URL", "http://localhost:3000")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./orders.db")

    # API
    API_TOKEN: str = os.getenv("API_TOKEN", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Lifecycle
    STALE_ORDER_DAYS: int = int(os.getenv("STALE_ORDER_DAYS", "30"))
    REMINDER_POLL_SECONDS: float = float(os.getenv("REMINDER_POLL_SECONDS", "3600"))

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Асинхронный URL для SQLAlchemy"""
        if self.DATABASE_URL.startswith("sqlite://"):
            return self.DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.DATABASE_URL


settings = Settings()
