import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///hospital.db")
    DATABASE_USER: str | None = os.getenv("DATABASE_USER") or None
    DATABASE_PASSWORD: str | None = os.getenv("DATABASE_PASSWORD") or None
    CREATE_SCHEMA: bool = _flag("CREATE_SCHEMA", "true")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
