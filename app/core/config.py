from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from typing import Optional

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Email
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 465
    SMTP_USER: str = "no-reply@planit.app"
    SMTP_PASSWORD: str = ""
    EMAILS_ENABLED: bool = False
    FRONTEND_BASE_URL: str = "http://localhost:3000"

    # Redis settings
    REDIS_URL: str = "redis://localhost:6379/0"
    DASHBOARD_CACHE_TTL_SECONDS: int = 60

    # OpenAI-compatible endpoint for the trip planner
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    PROJECT_NAME: str = "Planit API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Collaborative trip planning API"
    APP_NAME: str = "Planit"

    PASSWORD_MIN_LENGTH: int = 8
    TRIP_CODE_LENGTH: int = 6
    CREATE_TABLES_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
