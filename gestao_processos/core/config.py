import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        self.APP_NAME: str = os.getenv("APP_NAME", "Gestao de Processos API")
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
        self.ACCESS_TOKEN_EXPIRE_HOURS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "8"))
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        self.SQLALCHEMY_DATABASE_URI: str = os.getenv(
            "SQLALCHEMY_DATABASE_URI",
            f"sqlite:///{(base_dir / 'gestao_processos.db').as_posix()}",
        )
        self.ENV: str = os.getenv("ENV", "development")
        self.SEED_DEV_LOGIN: str | None = os.getenv("SEED_DEV_LOGIN") or None
        self.SEED_DEV_EMAIL: str | None = os.getenv("SEED_DEV_EMAIL") or None

        default_cors = ["http://localhost:3001", "http://127.0.0.1:3001"]
        cors_origins = os.getenv("BACKEND_CORS_ORIGINS")
        self.BACKEND_CORS_ORIGINS: List[str] = (
            [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
            if cors_origins
            else default_cors
        )

    @property
    def login_local_habilitado(self) -> bool:
        return self.ENV.lower() in {"local", "development"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
