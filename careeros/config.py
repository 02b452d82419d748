from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import os

class Settings(BaseSettings):
    # Database - Railway provides DATABASE_URL, fallback to SQLite for local
    database_url: Optional[str] = None

    # Redis - optional, cached views are disabled without it
    redis_url: str = ""

    # App Settings
    app_name: str = "CareerOS"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # API Settings
    backend_host: str = "0.0.0.0"
    backend_port: int = int(os.getenv("PORT", "8000"))
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Entity store calls fail with StoreTimeoutError after this many seconds
    store_timeout_seconds: float = 10.0

    # Cached view TTLs (seconds)
    overview_cache_ttl: int = 300
    list_cache_ttl: int = 600

    # Per-session notification log capacity (oldest evicted first)
    notification_log_size: int = 50

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.database_url is None:
            railway_db = os.getenv("DATABASE_URL")
            if railway_db:
                # SQLAlchemy async needs postgresql+asyncpg://
                if railway_db.startswith("postgres://"):
                    self.database_url = railway_db.replace("postgres://", "postgresql+asyncpg://", 1)
                elif railway_db.startswith("postgresql://"):
                    self.database_url = railway_db.replace("postgresql://", "postgresql+asyncpg://", 1)
                else:
                    self.database_url = railway_db
            else:
                self.database_url = "sqlite+aiosqlite:///./database/careeros.db"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
