from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DB_USER: str = os.getenv("DB_USER", "root")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: str = os.getenv("DB_PORT", "3306")
    DB_NAME: str = os.getenv("DB_NAME", "omnia_db")
    # Full async URL, overrides the DB_* parts when set
    DATABASE_URL: Optional[str] = None

    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-here")
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "omnia_session"
    SESSION_EXPIRE_MINUTES: int = 60 * 12

    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@omnia.io")
    # bcrypt hash, generate with `python -m omnia.core.security`
    ADMIN_PASSWORD_HASH: str = os.getenv("ADMIN_PASSWORD_HASH", "")

    PROTECTED_PREFIXES: List[str] = ["/admin", "/api/admin"]
    LOGIN_PATH: str = "/login"
    ADMIN_HOME: str = "/admin"

    MEDIA_ROOT: str = "media"
    MEDIA_URL: str = "/media"
    PUBLIC_BASE_URL: str = "http://localhost:8002"

    TIMER_TICK_SECONDS: float = 1.0
    SESSION_TTL_SECONDS: int = 60 * 60 * 6

    CORS_ORIGINS: List[str] = ["*"]

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
