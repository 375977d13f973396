import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    DATABASE_URL: str = ""
    DB_ECHO: bool = False

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    IMPORT_CHUNK_SIZE: int = 64 * 1024
    IMPORT_MAX_BYTES: int = 10 * 1024 * 1024  # 10 MB
    IMPORT_ENCODING: str = "utf-8-sig"
    IMPORT_DELIMITER: str = ","

    # per client IP, across /api/v1
    RATE_LIMIT: str = "100/15 minutes"
    RATE_LIMIT_ENABLED: bool = True

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
