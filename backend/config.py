# backend/config.py
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./habitflow.db"
    DEBUG: bool = False
    LOG_FILE: str = "habitflow.log"     # empty string disables the file handler
    SEED_DEMO_DATA: bool = False
    RATE_LIMIT: str = "60/minute"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
